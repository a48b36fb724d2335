"""Atelier — turns a fashion sketch into rotation and runway showcase videos."""

__version__ = "0.1.0"
