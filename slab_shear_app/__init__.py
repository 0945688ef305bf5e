"""Slab punching-shear strength calculator."""

__version__ = "1.0.0"
