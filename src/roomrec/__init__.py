"""Room recording service: start, stop and manage encoder-backed recordings."""

__version__ = "1.0.0"
