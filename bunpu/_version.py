"""Version information for bunpu."""

__version__ = "0.1.0"
