"""Polymap - print-ready maps confined to a boundary polygon."""

__version__ = "0.1.0"
