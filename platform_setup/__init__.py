"""Installer helpers for the Monadical platform."""

__version__ = "0.1.0"
