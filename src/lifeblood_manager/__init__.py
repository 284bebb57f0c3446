"""Lifeblood manager: side-by-side installations and supervised launches."""

__version__ = "0.1.0"
