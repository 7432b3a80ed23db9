"""valannounce: validator storage-location announcement registry."""

__version__ = "0.1.0"
