"""Entity memory block — the persisted unit of the entity layer."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel
from pydantic import Field
from pydantic import field_validator

from strata.models.facts import Fact
from strata.models.profile import EntityProfile


class CompressionStats(BaseModel):
    """Estimated token counts before and after compression."""

    original_tokens: int = 0
    compressed_tokens: int = 0
    ratio: int = Field(default=0, ge=0, le=100, description="Percent removed.")


class EntityMemoryBlock(BaseModel):
    """Profile plus facts for one entity."""

    entity_id: str
    profile: EntityProfile
    facts: list[Fact] = Field(default_factory=list)
    compression_stats: CompressionStats = Field(default_factory=CompressionStats)
    updated_at: datetime


class BlockUpdate(BaseModel):
    """Partial update; each field given replaces the stored value wholesale."""

    profile: EntityProfile | None = None
    facts: list[Fact] | None = None

    @field_validator("facts")
    @classmethod
    def _unique_fact_ids(cls, facts: list[Fact] | None) -> list[Fact] | None:
        if facts is not None:
            seen: set[str] = set()
            for fact in facts:
                if fact.id in seen:
                    raise ValueError(f"duplicate fact id: {fact.id}")
                seen.add(fact.id)
        return facts
