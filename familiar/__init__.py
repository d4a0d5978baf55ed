"""Familiar — keep the packages on every machine you use in sync."""

__version__ = "0.1.0"
