"""Real-time peer-to-peer chat relay with language detection and translation."""

__version__ = "1.0.0"
