"""tunedex - content-addressed audio library index."""

__version__ = "0.1.0"
