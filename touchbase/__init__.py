"""Touchbase: record a voice, clone it, and let an AI assistant call a friend."""

__version__ = "0.1.0"
