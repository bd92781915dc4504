"""Planar polygon geometry engine for building spaces."""

__version__ = "0.1.0"
