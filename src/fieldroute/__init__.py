"""Field-route planning service: geocoding, stop sequencing and provider directions."""

__version__ = "0.1.0"
