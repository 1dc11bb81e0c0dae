"""Application configuration dataclasses.

Frozen dataclasses with sensible defaults for each subsystem.
No env-var loading or YAML parsing — just plain defaults that can
be overridden at construction time.  ``EngineConfig`` bundles them
into the single object handed to the engine factory.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from dataclasses import field


@dataclass(frozen=True)
class CompressionConfig:
    """Tuneable parameters for fact compression."""

    dedup_threshold: float = 0.85
    min_confidence: float = 0.5
    max_facts: int = 5

    def __post_init__(self) -> None:
        if not 0.0 <= self.dedup_threshold <= 1.0:
            raise ValueError("dedup_threshold must be within [0, 1]")
        if not 0.0 <= self.min_confidence <= 1.0:
            raise ValueError("min_confidence must be within [0, 1]")
        if self.max_facts < 0:
            raise ValueError("max_facts must be >= 0")


@dataclass(frozen=True)
class BudgetSplit:
    """Share of the total token budget given to each layer.

    Whatever the three layers do not claim is headroom reserved for
    instruction and system tokens.
    """

    domain: float = 0.2
    entity: float = 0.5
    session: float = 0.2

    def __post_init__(self) -> None:
        for name in ("domain", "entity", "session"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} share must be within [0, 1]")
        if self.domain + self.entity + self.session > 1.0 + 1e-9:
            raise ValueError("layer shares must sum to <= 1.0")

    @property
    def headroom(self) -> float:
        return max(1.0 - (self.domain + self.entity + self.session), 0.0)

    def allocate(self, total_budget: int) -> dict[str, int]:
        """Split *total_budget* into whole-token layer budgets."""
        if total_budget < 0:
            raise ValueError("total_budget must be >= 0")
        return {
            "domain": math.floor(total_budget * self.domain),
            "entity": math.floor(total_budget * self.entity),
            "session": math.floor(total_budget * self.session),
        }


@dataclass(frozen=True)
class SessionConfig:
    """Lifetime and size limits for ephemeral sessions."""

    ttl_seconds: float = 1800.0
    max_messages: int = 50

    def __post_init__(self) -> None:
        if self.ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if self.max_messages < 1:
            raise ValueError("max_messages must be >= 1")


@dataclass(frozen=True)
class StoreConfig:
    """Behaviour switches for the entity memory store."""

    # create() on an existing entity id replaces the block when True,
    # raises ConflictError when False.
    overwrite_on_create: bool = True
    seed_from_profile: bool = True


@dataclass(frozen=True)
class AssemblyConfig:
    """Defaults for context assembly."""

    total_budget: int = 8000
    instruction: str = (
        "You are an assistant for government support program applications. "
        "Use the context below; prefer entity facts over general knowledge."
    )

    def __post_init__(self) -> None:
        if self.total_budget < 0:
            raise ValueError("total_budget must be >= 0")


@dataclass(frozen=True)
class EngineConfig:
    """All engine options in one place."""

    compression: CompressionConfig = field(default_factory=CompressionConfig)
    budget: BudgetSplit = field(default_factory=BudgetSplit)
    session: SessionConfig = field(default_factory=SessionConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    assembly: AssemblyConfig = field(default_factory=AssemblyConfig)
