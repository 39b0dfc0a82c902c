"""Idempotent PUT/GET/DELETE key/value store backed by plain files."""

__version__ = "0.1.0"
