"""Store Finder: a server-rendered store directory."""

__version__ = "1.0.0"
