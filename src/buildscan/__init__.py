"""buildscan - container image size estimation and vulnerability summaries."""

__version__ = "0.1.0"
