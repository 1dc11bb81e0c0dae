"""Strata MCP server — tool surface over the context engine.

``build_server`` wires one ``ContextAssembler`` (and through it the entity
store, session manager and domain provider) into a FastMCP instance.
Caller mistakes come back as ``rejected`` results with an ``error_code``;
anything else propagates to FastMCP.
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from typing import Any

from fastmcp import FastMCP
from pydantic import ValidationError

from strata.config import EngineConfig
from strata.engine.assembler import ContextAssembler
from strata.engine.assembler import create_assembler
from strata.errors import ConfigurationError
from strata.errors import ConflictError
from strata.errors import NotFoundError
from strata.errors import StorageError
from strata.errors import StrataError
from strata.memory.backends import RedisBlockBackend
from strata.models.context import AssemblyOptions
from strata.models.facts import FactInput
from strata.models.profile import EntityProfile
from strata.models.schemas import AssembleContextResult
from strata.models.schemas import CompressEntityResult
from strata.models.schemas import DeleteEntityResult
from strata.models.schemas import EntityResult
from strata.models.schemas import FactListResult
from strata.models.schemas import FactResult
from strata.models.schemas import MatchDomainsResult
from strata.models.schemas import PostMessageResult
from strata.models.schemas import RemoveFactResult
from strata.models.schemas import SessionResult
from strata.observability import timed

logger = logging.getLogger(__name__)

_ERROR_CODES: tuple[tuple[type[StrataError], str], ...] = (
    (NotFoundError, "not_found"),
    (ConflictError, "conflict"),
    (ConfigurationError, "unknown_domain"),
    (StorageError, "storage_error"),
)


def _error_code(exc: StrataError) -> str:
    for exc_type, code in _ERROR_CODES:
        if isinstance(exc, exc_type):
            return code
    return "validation_error"


def _validation_message(exc: ValidationError) -> str:
    err = exc.errors()[0] if exc.errors() else {}
    return str(err.get("msg", "Invalid input"))


def build_server(assembler: ContextAssembler, *, name: str = "Strata") -> FastMCP:
    """Return a FastMCP server whose tools operate on *assembler*."""
    mcp = FastMCP(name)
    store = assembler.store
    sessions = assembler.sessions
    domains = assembler.domains

    # -- entities --

    @mcp.tool
    def create_entity(profile: dict[str, Any]) -> EntityResult:
        """Create (or replace) the memory block for an entity profile.

        Args:
            profile: Entity profile; ``id`` and ``name`` are required.
        """
        with timed("mcp.create_entity"):
            entity_id = str(profile.get("id", ""))
            try:
                parsed = EntityProfile.model_validate(profile)
            except ValidationError as exc:
                return EntityResult(
                    entity_id=entity_id,
                    status="rejected",
                    error_code="validation_error",
                    message=_validation_message(exc),
                )
            try:
                block = store.create(parsed)
            except StrataError as exc:
                return EntityResult(
                    entity_id=parsed.id,
                    status="rejected",
                    error_code=_error_code(exc),
                    message=str(exc),
                )
            return EntityResult(entity_id=parsed.id, block=block)

    @mcp.tool
    def get_entity(entity_id: str) -> EntityResult:
        """Return the stored memory block for an entity."""
        with timed("mcp.get_entity"):
            block = store.get(entity_id)
            if block is None:
                return EntityResult(
                    entity_id=entity_id,
                    status="rejected",
                    error_code="not_found",
                    message=f"Entity not found: {entity_id}",
                )
            return EntityResult(entity_id=entity_id, block=block)

    @mcp.tool
    def delete_entity(entity_id: str) -> DeleteEntityResult:
        """Delete an entity's memory block."""
        with timed("mcp.delete_entity"):
            return DeleteEntityResult(entity_id=entity_id, deleted=store.delete(entity_id))

    # -- facts --

    @mcp.tool
    def add_fact(
        entity_id: str,
        content: str,
        type: str = "profile",
        confidence: float = 1.0,
        source: str = "user_input",
        expires_at: datetime | None = None,
        related_id: str | None = None,
    ) -> FactResult:
        """Append a fact to an entity's memory.

        Args:
            entity_id: Target entity.
            content: The fact as a short statement.
            type: Fact type (rejection_pattern, success_pattern, capability,
                application, certification, preference, profile).
            confidence: Confidence in [0, 1].
            source: user_input, document_parsed, email_detected or ai_inferred.
            expires_at: Optional instant after which the fact may be cleaned up.
            related_id: Optional id of the document or event behind the fact.
        """
        with timed("mcp.add_fact"):
            payload = {
                "type": type,
                "content": content,
                "confidence": confidence,
                "source": source,
                "expires_at": expires_at,
                "related_id": related_id,
            }
            try:
                fact = store.add_fact(entity_id, payload)
            except StrataError as exc:
                return FactResult(
                    entity_id=entity_id,
                    status="rejected",
                    error_code=_error_code(exc),
                    message=str(exc),
                )
            return FactResult(entity_id=entity_id, fact=fact)

    @mcp.tool
    def list_facts(entity_id: str, types: list[str] | None = None) -> FactListResult:
        """List an entity's facts, optionally filtered by type."""
        with timed("mcp.list_facts"):
            try:
                facts = store.get_facts(entity_id, types)
            except StrataError as exc:
                return FactListResult(
                    entity_id=entity_id,
                    status="rejected",
                    error_code=_error_code(exc),
                    message=str(exc),
                )
            return FactListResult(entity_id=entity_id, facts=facts)

    @mcp.tool
    def remove_fact(entity_id: str, fact_id: str) -> RemoveFactResult:
        """Remove one fact by id."""
        with timed("mcp.remove_fact"):
            return RemoveFactResult(
                entity_id=entity_id,
                fact_id=fact_id,
                removed=store.remove_fact(entity_id, fact_id),
            )

    @mcp.tool
    def compress_entity(entity_id: str, token_budget: int | None = None) -> CompressEntityResult:
        """Compress an entity's memory into short natural language.

        Args:
            entity_id: Target entity.
            token_budget: Optional cap; lowest-priority facts are dropped to fit.
        """
        with timed("mcp.compress_entity"):
            result = store.compress(entity_id)
            if result is None:
                return CompressEntityResult(
                    entity_id=entity_id,
                    status="rejected",
                    error_code="not_found",
                    message=f"Entity not found: {entity_id}",
                )
            context = (
                result.context
                if token_budget is None
                else store.get_compressed_context(entity_id, token_budget)
            )
            return CompressEntityResult(
                entity_id=entity_id,
                context=context,
                stats=result.stats,
                selected_fact_ids=[fact.id for fact in result.selected_facts],
            )

    @mcp.tool
    def record_event(entity_id: str, event: dict[str, Any]) -> FactResult:
        """Learn a fact from an application_outcome or failure_pattern event.

        Unknown entities are ignored: the result is ``ok`` with no fact.
        """
        with timed("mcp.record_event"):
            try:
                fact = store.learn_from_event(entity_id, event)
            except StrataError as exc:
                return FactResult(
                    entity_id=entity_id,
                    status="rejected",
                    error_code=_error_code(exc),
                    message=str(exc),
                )
            if fact is None:
                return FactResult(entity_id=entity_id, message="Entity not found; event ignored.")
            return FactResult(entity_id=entity_id, fact=fact)

    # -- sessions --

    @mcp.tool
    def open_session(
        session_id: str | None = None,
        entity_id: str | None = None,
        domain_id: str | None = None,
    ) -> SessionResult:
        """Start a conversation session; an id is generated when omitted."""
        with timed("mcp.open_session"):
            if domain_id is not None and domain_id not in domains.domain_ids:
                return SessionResult(
                    session_id=session_id or "",
                    status="rejected",
                    error_code="unknown_domain",
                    message=f"Unknown domain: {domain_id}",
                )
            session = sessions.create(session_id, entity_id=entity_id, domain_id=domain_id)
            return SessionResult(session_id=session.session_id, expires_at=session.expires_at)

    @mcp.tool
    def post_message(session_id: str, content: str, role: str = "user") -> PostMessageResult:
        """Append a message to a live session and refresh its TTL."""
        with timed("mcp.post_message"):
            try:
                message = sessions.append_message(session_id, role, content)
            except ValueError as exc:
                # Unknown role (StrEnum lookup).
                return PostMessageResult(
                    session_id=session_id,
                    status="rejected",
                    error_code="validation_error",
                    message=str(exc),
                )
            except StrataError as exc:
                return PostMessageResult(
                    session_id=session_id,
                    status="rejected",
                    error_code=_error_code(exc),
                    message=str(exc),
                )
            session = sessions.get(session_id)
            return PostMessageResult(
                session_id=session_id,
                message=message,
                intent=session.intent if session is not None else None,
            )

    # -- domains & assembly --

    @mcp.tool
    def match_domains(text: str) -> MatchDomainsResult:
        """Rank domains by keyword overlap with *text*."""
        with timed("mcp.match_domains"):
            matches = domains.match_by_keywords(text)
            return MatchDomainsResult(
                matches=matches,
                routed_domain=matches[0].domain_id if matches else None,
            )

    @mcp.tool
    def assemble_context(
        domain_id: str,
        entity_id: str | None = None,
        session_id: str | None = None,
        total_budget: int | None = None,
        message_limit: int | None = None,
        instruction: str | None = None,
    ) -> AssembleContextResult:
        """Assemble domain, entity and session context under a token budget.

        Args:
            domain_id: Domain to load (see match_domains).
            entity_id: Optional entity whose memory is included.
            session_id: Optional live session whose messages are included.
            total_budget: Overrides the configured total token budget.
            message_limit: Keep at most this many recent session messages.
            instruction: Overrides the configured prompt instruction.
        """
        with timed("mcp.assemble_context"):
            try:
                options = AssemblyOptions(
                    total_budget=total_budget, message_limit=message_limit
                )
            except ValidationError as exc:
                return AssembleContextResult(
                    status="rejected",
                    error_code="validation_error",
                    message=_validation_message(exc),
                )
            try:
                assembled = assembler.assemble(domain_id, entity_id, session_id, options)
            except StrataError as exc:
                return AssembleContextResult(
                    status="rejected",
                    error_code=_error_code(exc),
                    message=str(exc),
                )
            return AssembleContextResult(
                context=assembled,
                prompt=assembler.to_prompt(assembled, instruction),
            )

    return mcp


def create_server(
    redis_url: str | None = None, *, config: EngineConfig | None = None
) -> FastMCP:
    """Server backed by Redis when *redis_url* is given, in-process otherwise."""
    backend = RedisBlockBackend.from_url(redis_url) if redis_url else None
    if backend is not None:
        logger.info("Using Redis block backend at %s", redis_url)
    return build_server(create_assembler(config, backend=backend))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Strata MCP server.")
    parser.add_argument(
        "--redis-url",
        default=None,
        help="Persist entity memory in Redis (default: in-process only).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(level=args.log_level)
    create_server(args.redis_url).run()


if __name__ == "__main__":
    main()
