"""BLINDSPOTS package entrypoints."""

__version__ = "0.1.0"
