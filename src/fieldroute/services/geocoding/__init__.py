"""Address geocoding services."""

from .base import AddressComponent, GeocodeCandidate, Geocoder
from .cache import AddressCache, EvictionPolicy, NeverEvict, TTLEviction, build_cache, normalize_address
from .resolver import CoordinateResolver, extract_locality

__all__ = [
    "AddressComponent",
    "GeocodeCandidate",
    "Geocoder",
    "AddressCache",
    "EvictionPolicy",
    "NeverEvict",
    "TTLEviction",
    "build_cache",
    "normalize_address",
    "CoordinateResolver",
    "extract_locality",
]
