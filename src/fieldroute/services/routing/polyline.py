"""Encoded polyline helpers (Google's algorithm, shared by OSRM)."""

from __future__ import annotations


def _decode_value(polyline: str, index: int) -> tuple[int, int]:
    shift = 0
    result = 0
    while True:
        b = ord(polyline[index]) - 63
        index += 1
        result |= (b & 0x1f) << shift
        shift += 5
        if b < 0x20:
            break
    value = ~(result >> 1) if (result & 1) else (result >> 1)
    return value, index


def decode_polyline(polyline: str, precision: int = 5) -> list[tuple[float, float]]:
    """Decode a polyline string to a list of (lat, lon) coordinates.

    Raises ``ValueError`` on a truncated string.
    """
    factor = 10 ** precision
    coordinates = []
    index = 0
    lat = 0
    lon = 0

    try:
        while index < len(polyline):
            dlat, index = _decode_value(polyline, index)
            dlon, index = _decode_value(polyline, index)
            lat += dlat
            lon += dlon
            coordinates.append((lat / factor, lon / factor))
    except IndexError as exc:
        raise ValueError("Truncated polyline string.") from exc

    return coordinates
