"""Anonymous live visitor tracking with streamed live and historical stats."""

__version__ = "1.0.0"
