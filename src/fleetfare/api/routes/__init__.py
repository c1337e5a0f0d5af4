"""Route group exports."""

from . import display, fares, health, terminal, tracking

__all__ = ["fares", "terminal", "display", "tracking", "health"]
