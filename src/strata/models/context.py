"""Domain context and the assembled, token-budgeted output."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel
from pydantic import Field


class DomainContext(BaseModel):
    """Static knowledge for one domain. Immutable after load."""

    model_config = {"frozen": True}

    domain_id: str
    knowledge: str
    token_budget: int = Field(description="Recommended budget for this domain.")


class DomainMatch(BaseModel):
    """Keyword routing score for one domain."""

    model_config = {"frozen": True}

    domain_id: str
    score: float = Field(ge=0.0, le=1.0)
    matched_keywords: tuple[str, ...] = ()


class AssemblyOptions(BaseModel):
    total_budget: int | None = Field(
        default=None,
        ge=0,
        description="Overrides the configured total token budget.",
    )
    message_limit: int | None = Field(
        default=None,
        ge=0,
        description="Keep at most this many recent session messages.",
    )


class TokenBreakdown(BaseModel):
    domain: int = 0
    entity: int = 0
    session: int = 0
    total: int = 0


class LayerBudgets(BaseModel):
    domain: int = 0
    entity: int = 0
    session: int = 0
    headroom: int = 0


class LayersPresent(BaseModel):
    domain: bool = False
    entity: bool = False
    session: bool = False


class AssemblyMetadata(BaseModel):
    total_budget: int
    budgets: LayerBudgets
    layers_present: LayersPresent
    within_budget: bool
    dropped_messages: int = 0
    assembled_at: datetime


class AssembledContext(BaseModel):
    """Final three-part context. Recomputed per request, never stored."""

    domain_id: str
    domain_part: str = ""
    entity_part: str = ""
    session_part: str = ""
    token_breakdown: TokenBreakdown
    metadata: AssemblyMetadata

    @property
    def text(self) -> str:
        """Non-empty parts joined in domain, entity, session order."""
        return join_parts(self.domain_part, self.entity_part, self.session_part)


PART_SEPARATOR = "\n\n"


def join_parts(*parts: str) -> str:
    return PART_SEPARATOR.join(part for part in parts if part)
