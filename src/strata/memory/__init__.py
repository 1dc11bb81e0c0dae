"""Memory domain — persistent entity blocks and ephemeral sessions."""

from __future__ import annotations

from strata.memory.backends import BlockBackend
from strata.memory.backends import InMemoryBlockBackend
from strata.memory.backends import RedisBlockBackend
from strata.memory.sessions import SessionContextManager
from strata.memory.store import EntityMemoryStore

__all__ = [
    "BlockBackend",
    "EntityMemoryStore",
    "InMemoryBlockBackend",
    "RedisBlockBackend",
    "SessionContextManager",
]
