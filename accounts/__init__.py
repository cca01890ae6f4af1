"""User-account lifecycle management backed by a document collection."""

__version__ = "0.1.0"
