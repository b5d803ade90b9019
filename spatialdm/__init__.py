"""Spatial reasoning and context assembly for an AI tabletop narrator."""

__version__ = "0.1.0"
