"""Schelling-Sakoda segregation simulation."""

__version__ = "0.1.0"
