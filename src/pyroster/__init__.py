"""Practice roster management and balanced team generation."""

__version__ = "0.1.0"
