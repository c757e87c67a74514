"""
Storage collaborators for the workflow engine.

MemoryStore keeps everything in process; FileStore persists JSON documents
under a board directory.
"""

from agentboard.store.base import (
    DependencyError,
    ItemStore,
    NotFound,
    StaleItemError,
)
from agentboard.store.files import FileStore
from agentboard.store.memory import MemoryStore

__all__ = [
    "DependencyError",
    "ItemStore",
    "NotFound",
    "StaleItemError",
    "FileStore",
    "MemoryStore",
]
