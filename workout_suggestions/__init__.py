"""Daily workout suggestions with fallback workout generation."""

__version__ = "0.3.0"
