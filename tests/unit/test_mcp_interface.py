"""MCP interface contract tests.

All tests use ``fastmcp.Client`` to exercise the full MCP protocol
(serialization, validation) against an in-process engine.
"""

from __future__ import annotations

import json

import pytest


def _parse(result) -> dict:
    """Extract the JSON payload from a CallToolResult."""
    return json.loads(result.content[0].text)


_PROFILE = {
    "id": "acme",
    "name": "Acme",
    "basic": {"founded_date": "2020-03-01", "employee_count": 50},
    "qualifications": {"certifications": ["ISO 9001", "INNOBIZ"]},
}


async def _create_acme(client) -> dict:
    return _parse(await client.call_tool("create_entity", {"profile": _PROFILE}))


# -----------------------------------------------------------------------
# Entities
# -----------------------------------------------------------------------


class TestEntities:
    async def test_create_entity(self, mcp_client):
        data = await _create_acme(mcp_client)
        assert data["status"] == "ok"
        assert data["entity_id"] == "acme"
        assert data["block"]["profile"]["name"] == "Acme"

    async def test_create_rejects_invalid_profile(self, mcp_client):
        data = _parse(
            await mcp_client.call_tool("create_entity", {"profile": {"id": "x"}})
        )
        assert data["status"] == "rejected"
        assert data["error_code"] == "validation_error"

    async def test_get_missing_entity(self, mcp_client):
        data = _parse(await mcp_client.call_tool("get_entity", {"entity_id": "ghost"}))
        assert data["status"] == "rejected"
        assert data["error_code"] == "not_found"

    async def test_delete_entity(self, mcp_client):
        await _create_acme(mcp_client)
        data = _parse(await mcp_client.call_tool("delete_entity", {"entity_id": "acme"}))
        assert data["deleted"] is True

    async def test_rejects_missing_arguments(self, mcp_client):
        with pytest.raises(Exception):
            await mcp_client.call_tool("get_entity", {})


# -----------------------------------------------------------------------
# Facts
# -----------------------------------------------------------------------


class TestFacts:
    async def test_add_and_list_facts(self, mcp_client):
        await _create_acme(mcp_client)
        added = _parse(
            await mcp_client.call_tool(
                "add_fact",
                {
                    "entity_id": "acme",
                    "content": "기술성 평가 미달",
                    "type": "rejection_pattern",
                    "confidence": 0.95,
                },
            )
        )
        assert added["status"] == "ok"
        assert added["fact"]["id"].startswith("fact_")

        listed = _parse(
            await mcp_client.call_tool(
                "list_facts", {"entity_id": "acme", "types": ["rejection_pattern"]}
            )
        )
        assert [f["content"] for f in listed["facts"]] == ["기술성 평가 미달"]

    async def test_add_fact_rejects_bad_confidence(self, mcp_client):
        await _create_acme(mcp_client)
        data = _parse(
            await mcp_client.call_tool(
                "add_fact", {"entity_id": "acme", "content": "x", "confidence": 1.5}
            )
        )
        assert data["status"] == "rejected"
        assert data["error_code"] == "validation_error"

    async def test_add_fact_unknown_entity(self, mcp_client):
        data = _parse(
            await mcp_client.call_tool("add_fact", {"entity_id": "ghost", "content": "x"})
        )
        assert data["error_code"] == "not_found"

    async def test_remove_fact(self, mcp_client):
        await _create_acme(mcp_client)
        added = _parse(
            await mcp_client.call_tool("add_fact", {"entity_id": "acme", "content": "temp"})
        )
        data = _parse(
            await mcp_client.call_tool(
                "remove_fact", {"entity_id": "acme", "fact_id": added["fact"]["id"]}
            )
        )
        assert data["removed"] is True

    async def test_compress_entity(self, mcp_client):
        await _create_acme(mcp_client)
        data = _parse(await mcp_client.call_tool("compress_entity", {"entity_id": "acme"}))
        assert data["status"] == "ok"
        assert data["context"].startswith("Acme")
        assert 0 <= data["stats"]["ratio"] <= 100

    async def test_record_event(self, mcp_client):
        await _create_acme(mcp_client)
        data = _parse(
            await mcp_client.call_tool(
                "record_event",
                {
                    "entity_id": "acme",
                    "event": {
                        "kind": "failure_pattern",
                        "category": "budget plan",
                        "prevention": "itemize equipment costs",
                    },
                },
            )
        )
        assert data["fact"]["type"] == "rejection_pattern"

    async def test_record_event_unknown_entity_is_ignored(self, mcp_client):
        data = _parse(
            await mcp_client.call_tool(
                "record_event",
                {
                    "entity_id": "ghost",
                    "event": {"kind": "failure_pattern", "category": "a", "prevention": "b"},
                },
            )
        )
        assert data["status"] == "ok"
        assert data["fact"] is None


# -----------------------------------------------------------------------
# Sessions, domains, assembly
# -----------------------------------------------------------------------


class TestSessionsAndAssembly:
    async def test_open_session_and_post_message(self, mcp_client):
        opened = _parse(
            await mcp_client.call_tool("open_session", {"session_id": "s1", "domain_id": "startup"})
        )
        assert opened["session_id"] == "s1"
        assert opened["expires_at"]

        posted = _parse(
            await mcp_client.call_tool(
                "post_message", {"session_id": "s1", "content": "사업계획서 작성 부탁해"}
            )
        )
        assert posted["status"] == "ok"
        assert posted["intent"]["type"] == "document_generation"

    async def test_open_session_unknown_domain(self, mcp_client):
        data = _parse(await mcp_client.call_tool("open_session", {"domain_id": "aerospace"}))
        assert data["error_code"] == "unknown_domain"

    async def test_post_message_missing_session(self, mcp_client):
        data = _parse(
            await mcp_client.call_tool("post_message", {"session_id": "ghost", "content": "hi"})
        )
        assert data["error_code"] == "not_found"

    async def test_post_message_bad_role(self, mcp_client):
        await mcp_client.call_tool("open_session", {"session_id": "s1"})
        data = _parse(
            await mcp_client.call_tool(
                "post_message", {"session_id": "s1", "content": "hi", "role": "robot"}
            )
        )
        assert data["error_code"] == "validation_error"

    async def test_match_domains(self, mcp_client):
        data = _parse(
            await mcp_client.call_tool("match_domains", {"text": "스마트공장 MES 도입"})
        )
        assert data["routed_domain"] == "manufacturing"
        assert data["matches"][0]["matched_keywords"] == ["스마트공장", "MES"]

    async def test_assemble_context(self, mcp_client):
        await _create_acme(mcp_client)
        await mcp_client.call_tool("open_session", {"session_id": "s1", "entity_id": "acme"})
        await mcp_client.call_tool(
            "post_message", {"session_id": "s1", "content": "hello", "role": "assistant"}
        )
        data = _parse(
            await mcp_client.call_tool(
                "assemble_context",
                {"domain_id": "startup", "session_id": "s1", "total_budget": 2000},
            )
        )
        assert data["status"] == "ok"
        context = data["context"]
        assert context["metadata"]["total_budget"] == 2000
        assert context["metadata"]["layers_present"] == {
            "domain": True,
            "entity": True,
            "session": True,
        }
        assert "## Entity memory" in data["prompt"]
        assert "assistant: hello" in data["prompt"]

    async def test_assemble_unknown_domain(self, mcp_client):
        data = _parse(
            await mcp_client.call_tool("assemble_context", {"domain_id": "aerospace"})
        )
        assert data["status"] == "rejected"
        assert data["error_code"] == "unknown_domain"

    async def test_assemble_rejects_negative_budget(self, mcp_client):
        data = _parse(
            await mcp_client.call_tool(
                "assemble_context", {"domain_id": "startup", "total_budget": -1}
            )
        )
        assert data["error_code"] == "validation_error"
