"""JSON document validation service core."""

__version__ = "1.0.0"
