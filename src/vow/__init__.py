"""Vow: promise tracking with reputation, moderation and global stats."""

__version__ = "0.1.0"
