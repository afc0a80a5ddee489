"""Share a single file as a one-time, authenticated HTTP download."""

__version__ = "0.1.0"

__all__ = ["__version__"]
