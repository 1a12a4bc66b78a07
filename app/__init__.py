"""Skin Locker: per-user image skins with consistent rows and files."""

__version__ = "0.1.0"
