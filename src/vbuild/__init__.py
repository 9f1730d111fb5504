"""Timeline composition and build synthesis for scene-based videos."""

__version__ = "0.1.0"
