"""Pydantic result models for the MCP tool surface.

Tools never raise for caller mistakes; they return one of these with
``status`` set to ``rejected`` (bad input, unknown id) or ``error`` and a
machine-readable ``error_code``.  FastMCP serializes them automatically.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel
from pydantic import Field

from strata.models.blocks import CompressionStats
from strata.models.blocks import EntityMemoryBlock
from strata.models.context import AssembledContext
from strata.models.context import DomainMatch
from strata.models.facts import Fact
from strata.models.session import SessionIntent
from strata.models.session import SessionMessage


class ToolResult(BaseModel):
    status: str = Field(
        default="ok",
        description="Outcome status (ok, rejected, error).",
    )
    error_code: str | None = Field(
        default=None,
        description="Machine-readable reason when status is not ok.",
    )
    message: str | None = None


class EntityResult(ToolResult):
    entity_id: str
    block: EntityMemoryBlock | None = None


class DeleteEntityResult(ToolResult):
    entity_id: str
    deleted: bool = False


class FactResult(ToolResult):
    entity_id: str
    fact: Fact | None = Field(
        default=None,
        description="The stored fact; null when nothing was stored.",
    )


class FactListResult(ToolResult):
    entity_id: str
    facts: list[Fact] = Field(default_factory=list)


class RemoveFactResult(ToolResult):
    entity_id: str
    fact_id: str
    removed: bool = False


class CompressEntityResult(ToolResult):
    entity_id: str
    context: str = ""
    stats: CompressionStats | None = None
    selected_fact_ids: list[str] = Field(default_factory=list)


class SessionResult(ToolResult):
    session_id: str
    expires_at: datetime | None = None


class PostMessageResult(ToolResult):
    session_id: str
    message: SessionMessage | None = None
    intent: SessionIntent | None = Field(
        default=None,
        description="Session intent after the message was appended.",
    )


class MatchDomainsResult(ToolResult):
    matches: list[DomainMatch] = Field(default_factory=list)
    routed_domain: str | None = None


class AssembleContextResult(ToolResult):
    context: AssembledContext | None = None
    prompt: str = Field(
        default="",
        description="Prompt text built from the assembled context.",
    )
