"""Route group exports."""

from . import addresses, health, routes

__all__ = ["routes", "addresses", "health"]
