from .base import DocumentStore
from .feed import ChangeFeed, Subscription
from .memory import MemoryDocumentStore
from .mirror import LibraryMirror, MirrorRegistry
from .sql import SqlDocumentStore

__all__ = [
    "ChangeFeed",
    "DocumentStore",
    "LibraryMirror",
    "MemoryDocumentStore",
    "MirrorRegistry",
    "SqlDocumentStore",
    "Subscription",
]
