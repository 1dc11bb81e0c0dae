"""Persistence backends for entity memory blocks.

The store only needs ``get``/``put``/``delete`` (plus ``keys`` for listing).
Backends return independent copies so callers can never mutate stored state
outside a store operation.
"""

from __future__ import annotations

from collections.abc import Iterator
from threading import Lock
from typing import Protocol

from pydantic import ValidationError
from redis import Redis  # type: ignore[import-untyped]

from strata.errors import StorageError
from strata.models.blocks import EntityMemoryBlock


class BlockBackend(Protocol):
    """Minimal key-value contract the entity store depends on."""

    def get(self, key: str) -> EntityMemoryBlock | None:
        """Return the stored block or ``None``."""

    def put(self, key: str, block: EntityMemoryBlock) -> None:
        """Store *block* under *key*, replacing any previous value."""

    def delete(self, key: str) -> bool:
        """Remove *key*; ``True`` if something was removed."""

    def keys(self) -> Iterator[str]:
        """Iterate over stored keys."""


class InMemoryBlockBackend:
    """Dict-backed backend for tests and single-process use."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._blocks: dict[str, EntityMemoryBlock] = {}

    def get(self, key: str) -> EntityMemoryBlock | None:
        with self._lock:
            block = self._blocks.get(key)
            return block.model_copy(deep=True) if block is not None else None

    def put(self, key: str, block: EntityMemoryBlock) -> None:
        with self._lock:
            self._blocks[key] = block.model_copy(deep=True)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._blocks.pop(key, None) is not None

    def keys(self) -> Iterator[str]:
        with self._lock:
            snapshot = sorted(self._blocks)
        return iter(snapshot)

    def clear(self) -> None:
        with self._lock:
            self._blocks.clear()


# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------

_PREFIX = "strata"
_BLOCK_KEY = f"{_PREFIX}:block"


class RedisBlockBackend:
    """Blocks stored as JSON strings keyed by ``strata:block:{entity_id}``.

    A value that no longer decodes raises ``StorageError`` rather than
    reading as missing, so no write path can silently replace it.
    """

    def __init__(self, redis: Redis, *, prefix: str = _BLOCK_KEY) -> None:
        self._redis = redis
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str) -> RedisBlockBackend:
        return cls(Redis.from_url(url))

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def get(self, key: str) -> EntityMemoryBlock | None:
        data = self._redis.get(self._key(key))
        if data is None:
            return None
        try:
            return EntityMemoryBlock.model_validate_json(data)
        except ValidationError as exc:
            raise StorageError(f"Malformed block stored under {self._key(key)}") from exc

    def put(self, key: str, block: EntityMemoryBlock) -> None:
        self._redis.set(self._key(key), block.model_dump_json())

    def delete(self, key: str) -> bool:
        return bool(self._redis.delete(self._key(key)))

    def keys(self) -> Iterator[str]:
        start = len(self._prefix) + 1
        for raw in self._redis.scan_iter(match=f"{self._prefix}:*"):
            name = raw.decode() if isinstance(raw, bytes) else raw
            yield name[start:]

    def close(self) -> None:
        self._redis.close()
