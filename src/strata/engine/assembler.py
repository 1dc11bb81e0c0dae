"""Context assembler — combines domain, entity and session layers.

Each layer gets a floor share of the total token budget from
``BudgetSplit``.  The domain and entity layers fit themselves to their
share.  When the concatenated text still exceeds the total, the session
layer gives way first (oldest messages first), then entity facts, then
the domain part.  Profile lines are never dropped.

An unknown domain raises ``ConfigurationError``.  A missing entity or a
missing/expired session just yields an empty part.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from datetime import UTC

from strata.config import EngineConfig
from strata.domain.provider import DomainKnowledgeProvider
from strata.engine.prompt_builder import to_prompt
from strata.engine.tokens import estimate_tokens
from strata.memory.backends import BlockBackend
from strata.memory.sessions import render_session
from strata.memory.sessions import SessionContextManager
from strata.memory.store import EntityMemoryStore
from strata.models.context import AssembledContext
from strata.models.context import AssemblyMetadata
from strata.models.context import AssemblyOptions
from strata.models.context import join_parts
from strata.models.context import LayerBudgets
from strata.models.context import LayersPresent
from strata.models.context import TokenBreakdown
from strata.models.session import SessionContext
from strata.observability import timed

logger = logging.getLogger(__name__)


class ContextAssembler:
    """Builds token-budgeted context from the three layers."""

    def __init__(
        self,
        domains: DomainKnowledgeProvider,
        store: EntityMemoryStore,
        sessions: SessionContextManager,
        *,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.domains = domains
        self.store = store
        self.sessions = sessions
        self._config = config or EngineConfig()
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    @property
    def config(self) -> EngineConfig:
        return self._config

    def assemble(
        self,
        domain_id: str,
        entity_id: str | None = None,
        session_id: str | None = None,
        options: AssemblyOptions | None = None,
    ) -> AssembledContext:
        """Assemble context for one request.

        When *entity_id* is omitted, the session's entity (if any) is used.
        """
        options = options or AssemblyOptions()
        total_budget = (
            options.total_budget
            if options.total_budget is not None
            else self._config.assembly.total_budget
        )

        with timed("assembler.assemble"):
            # Resolve the domain first so an unknown id fails before any work.
            self.domains.definition(domain_id)

            session = self.sessions.get(session_id) if session_id else None
            if entity_id is None and session is not None:
                entity_id = session.entity_id

            shares = self._config.budget.allocate(total_budget)
            budgets = LayerBudgets(
                domain=shares["domain"],
                entity=shares["entity"],
                session=shares["session"],
                headroom=total_budget - sum(shares.values()),
            )

            domain_part = self.domains.render(domain_id, budgets.domain)
            entity_part = (
                self.store.get_compressed_context(entity_id, budgets.entity)
                if entity_id
                else ""
            )
            session_part, dropped = self._render_session(
                session,
                budgets.session,
                options.message_limit,
                fixed_text=join_parts(domain_part, entity_part),
                total_budget=total_budget,
            )

            text = join_parts(domain_part, entity_part, session_part)
            if entity_id and estimate_tokens(text) > total_budget:
                others = join_parts(domain_part, session_part)
                entity_part = self.store.get_compressed_context(
                    entity_id, max(total_budget - estimate_tokens(others) - 1, 0)
                )
                text = join_parts(domain_part, entity_part, session_part)
            if estimate_tokens(text) > total_budget:
                domain_part = self._fit_domain(
                    domain_id, total_budget, join_parts(entity_part, session_part)
                )
                text = join_parts(domain_part, entity_part, session_part)

            breakdown = TokenBreakdown(
                domain=estimate_tokens(domain_part),
                entity=estimate_tokens(entity_part),
                session=estimate_tokens(session_part),
                total=estimate_tokens(text),
            )
            within_budget = breakdown.total <= total_budget
            if not within_budget:
                logger.warning(
                    "Assembled context over budget domain=%s total=%d budget=%d",
                    domain_id,
                    breakdown.total,
                    total_budget,
                )

        return AssembledContext(
            domain_id=domain_id,
            domain_part=domain_part,
            entity_part=entity_part,
            session_part=session_part,
            token_breakdown=breakdown,
            metadata=AssemblyMetadata(
                total_budget=total_budget,
                budgets=budgets,
                layers_present=LayersPresent(
                    domain=bool(domain_part),
                    entity=bool(entity_part),
                    session=bool(session_part),
                ),
                within_budget=within_budget,
                dropped_messages=dropped,
                assembled_at=self._clock(),
            ),
        )

    @staticmethod
    def _render_session(
        session: SessionContext | None,
        budget: int,
        message_limit: int | None,
        *,
        fixed_text: str,
        total_budget: int,
    ) -> tuple[str, int]:
        """Render the session, shrinking it until the joined text fits."""
        if session is None:
            return "", 0
        text, dropped = render_session(session, budget, message_limit=message_limit)
        kept = len(session.messages) - dropped
        while kept > 0 and estimate_tokens(join_parts(fixed_text, text)) > total_budget:
            text, dropped = render_session(session, budget, message_limit=kept - 1)
            kept = len(session.messages) - dropped
        return text, dropped

    def _fit_domain(self, domain_id: str, total_budget: int, rest: str) -> str:
        """Richest domain rendering that still fits beside *rest*."""
        budget = total_budget - estimate_tokens(rest)
        while budget > 0:
            text = self.domains.render(domain_id, budget)
            if estimate_tokens(join_parts(text, rest)) <= total_budget:
                return text
            budget -= 1
        logger.debug("Dropped domain part domain=%s budget=%d", domain_id, total_budget)
        return ""

    def to_prompt(self, assembled: AssembledContext, instruction: str | None = None) -> str:
        """Format *assembled* with *instruction* or the configured default."""
        return to_prompt(
            assembled,
            instruction if instruction is not None else self._config.assembly.instruction,
        )


def create_assembler(
    config: EngineConfig | None = None,
    *,
    backend: BlockBackend | None = None,
    domains: DomainKnowledgeProvider | None = None,
    clock: Callable[[], datetime] | None = None,
) -> ContextAssembler:
    """Wire a store, session manager and domain provider into an assembler."""
    config = config or EngineConfig()
    store = EntityMemoryStore(
        backend,
        compression=config.compression,
        config=config.store,
        clock=clock,
    )
    sessions = SessionContextManager(config.session, clock=clock)
    return ContextAssembler(
        domains or DomainKnowledgeProvider(),
        store,
        sessions,
        config=config,
        clock=clock,
    )
