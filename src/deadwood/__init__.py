"""deadwood - whole-program unused declaration detection and safe deletion."""

__version__ = "0.1.0"
