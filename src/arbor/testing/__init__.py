"""Testing utilities for arbor applications."""

from arbor.testing.client import TestClient

__all__ = ["TestClient"]
