"""Environment for the whole suite.

Settings are read lazily from the environment, so these defaults must be in
place before anything under ``apps.api`` is imported.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-at-least-32-bytes")
os.environ.setdefault("JWT_EXPIRE_MINUTES", "60")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:5173")
os.environ.setdefault("LOG_LEVEL", "WARNING")


class FakeClock:
    """Timer for ``TTLCache``-backed objects; tests move ``now`` by hand."""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now
