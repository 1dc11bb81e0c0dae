"""Redis block backend and the MCP surface over it.

Requires Docker; the session-scoped container fixture skips otherwise.
"""

from __future__ import annotations

import json

import pytest
from fastmcp import Client

from strata.engine.assembler import create_assembler
from strata.errors import StorageError
from strata.memory.backends import RedisBlockBackend
from strata.memory.store import EntityMemoryStore
from strata.models.facts import FactType
from strata.server import build_server


def _parse(result) -> dict:
    return json.loads(result.content[0].text)


@pytest.fixture()
def backend(redis_client) -> RedisBlockBackend:
    return RedisBlockBackend(redis_client)


@pytest.fixture()
def store(backend, clock) -> EntityMemoryStore:
    return EntityMemoryStore(backend, clock=clock)


class TestRedisBlockBackend:
    def test_put_get_delete(self, backend, store, acme_profile, redis_client):
        block = store.create(acme_profile)

        assert redis_client.exists("strata:block:acme") == 1
        assert backend.get("acme").model_dump() == block.model_dump()
        assert list(backend.keys()) == ["acme"]

        assert backend.delete("acme") is True
        assert backend.delete("acme") is False
        assert backend.get("acme") is None

    def test_missing_key(self, backend):
        assert backend.get("ghost") is None

    def test_malformed_payload_raises(self, backend, store, acme_profile, redis_client):
        redis_client.set("strata:block:acme", b"{not json")
        with pytest.raises(StorageError):
            backend.get("acme")
        with pytest.raises(StorageError):
            store.create(acme_profile)
        assert redis_client.get("strata:block:acme") == b"{not json"

    def test_custom_prefix_isolates_keys(self, redis_client, store, acme_profile):
        store.create(acme_profile)
        other = RedisBlockBackend(redis_client, prefix="tenant-b")
        assert other.get("acme") is None
        assert list(other.keys()) == []


class TestStoreOverRedis:
    def test_facts_survive_a_new_store(self, backend, store, acme_profile, clock):
        store.create(acme_profile)
        fact = store.add_fact(
            "acme", {"type": "preference", "content": "prefers R&D grants"}
        )

        reopened = EntityMemoryStore(backend, clock=clock)
        facts = reopened.get_facts("acme", [FactType.preference])
        assert [f.id for f in facts] == [fact.id]

    def test_compressed_context_matches_in_memory(self, store, acme_profile, clock):
        store.create(acme_profile)
        in_memory = EntityMemoryStore(clock=clock)
        in_memory.create(acme_profile)
        assert store.compress("acme").context == in_memory.compress("acme").context


class TestMCPOverRedis:
    async def test_entity_roundtrip(self, backend, clock):
        server = build_server(create_assembler(backend=backend, clock=clock))
        async with Client(server) as client:
            created = _parse(
                await client.call_tool(
                    "create_entity", {"profile": {"id": "acme", "name": "Acme"}}
                )
            )
            assert created["status"] == "ok"

            fetched = _parse(await client.call_tool("get_entity", {"entity_id": "acme"}))
            assert fetched["block"]["profile"]["name"] == "Acme"

            assembled = _parse(
                await client.call_tool(
                    "assemble_context", {"domain_id": "finance", "entity_id": "acme"}
                )
            )
            assert assembled["context"]["metadata"]["layers_present"]["entity"] is True
