"""feedlens: normalized, deduplicated article views for feed readers."""

__version__ = "0.1.0"
