"""Trading journal backend: broker trade-history import."""

__version__ = "0.1.0"
