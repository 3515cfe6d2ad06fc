"""Generate multi-speaker SSML scripts from PDF articles."""

__version__ = "2.0.0"
