"""Plot GPS velocities and strain rates with GMT."""

__version__ = "1.1.0"

__all__ = ["__version__"]
