"""simpleice: schedule emails in case of emergency."""

__version__ = "0.2.0"
