"""Daylight Wallpaper - sets the desktop background to match the solar day."""

__version__ = "1.0.0"
