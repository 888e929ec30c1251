"""Hue bridge emulation for GPIO-driven dimmer channels."""

__version__ = "0.1.0"
