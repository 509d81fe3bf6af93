"""Bundled directory handlers and handler generators."""
