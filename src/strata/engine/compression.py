"""Fact compression: dedup, filter, prioritize, render.

Turns a profile and its fact list into a short natural-language summary:

1. semantic dedup (see ``strata.engine.similarity``)
2. confidence filter
3. priority selection by fact type, then confidence, then input order
4. rendering into one line per item
5. token accounting against the serialized input

``compress`` is a pure function of its arguments.  The reference date used
for the entity's age is an explicit argument for that reason.
"""

from __future__ import annotations

import json
import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from strata.config import CompressionConfig
from strata.engine.similarity import semantic_dedup
from strata.engine.tokens import compression_ratio
from strata.engine.tokens import estimate_tokens
from strata.models.blocks import CompressionStats
from strata.models.facts import Fact
from strata.models.profile import EntityProfile
from strata.observability import timed

LINE_SEPARATOR = " "
FACT_BULLET = "• "
MAX_LISTED_CERTIFICATIONS = 4


@dataclass(frozen=True)
class CompressionBreakdown:
    """Fact counts after each compression stage."""

    original_fact_count: int
    after_dedup_count: int
    after_filter_count: int
    final_count: int


@dataclass(frozen=True)
class CompressionResult:
    context: str
    selected_facts: tuple[Fact, ...]
    stats: CompressionStats
    breakdown: CompressionBreakdown


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def select_facts(facts: Sequence[Fact], limit: int) -> list[Fact]:
    """Top *limit* facts by type rank, then confidence, then input position."""
    ordered = sorted(
        enumerate(facts),
        key=lambda item: (-item[1].type.rank, -item[1].confidence, item[0]),
    )
    return [fact for _, fact in ordered[:limit]]


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _format_number(value: float) -> str:
    return f"{value:g}"


def _percent(part: int, whole: int) -> int:
    return math.floor(part / whole * 100 + 0.5)


def render_profile(profile: EntityProfile, as_of: date) -> str:
    basic = profile.basic
    parts: list[str] = []
    age = profile.age_in_years(as_of)
    if basic.founded_date is not None and age is not None:
        parts.append(f"est. {basic.founded_date.year}, {age}y")
    if basic.employee_count is not None:
        parts.append(f"{basic.employee_count} employees")
    if basic.annual_revenue is not None:
        parts.append(f"revenue {_format_number(basic.annual_revenue)}")
    if basic.industry:
        parts.append(basic.industry)
    if not parts:
        return f"{profile.name}."
    return f"{profile.name} ({'; '.join(parts)})."


def render_qualifications(profile: EntityProfile) -> str | None:
    certifications = profile.qualifications.certifications
    if not certifications:
        return None
    shown = "/".join(certifications[:MAX_LISTED_CERTIFICATIONS])
    hidden = len(certifications) - MAX_LISTED_CERTIFICATIONS
    suffix = f" +{hidden} more" if hidden > 0 else ""
    return f"Certifications: {shown}{suffix}."


def render_history(profile: EntityProfile) -> str | None:
    history = profile.history
    if history.total_applications == 0:
        return None
    rate = _percent(history.selection_count, history.total_applications)
    return (
        f"Applications: {history.total_applications} "
        f"(selected {history.selection_count}/rejected {history.rejection_count}, "
        f"{rate}%)."
    )


def render_context(
    profile: EntityProfile, facts: Sequence[Fact], as_of: date
) -> str:
    """Render the profile summary followed by one bullet per fact, in order."""
    lines = [render_profile(profile, as_of)]
    for optional in (render_qualifications(profile), render_history(profile)):
        if optional:
            lines.append(optional)
    lines.extend(f"{FACT_BULLET}{fact.content}" for fact in facts)
    return LINE_SEPARATOR.join(lines)


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


def serialize_input(profile: EntityProfile, facts: Sequence[Fact]) -> str:
    """Compact JSON of the uncompressed input, used as the token baseline."""
    payload = {
        "profile": profile.model_dump(mode="json"),
        "facts": [fact.model_dump(mode="json") for fact in facts],
    }
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def compute_stats(
    profile: EntityProfile, facts: Sequence[Fact], context: str
) -> CompressionStats:
    original_tokens = estimate_tokens(serialize_input(profile, facts))
    compressed_tokens = estimate_tokens(context)
    return CompressionStats(
        original_tokens=original_tokens,
        compressed_tokens=compressed_tokens,
        ratio=compression_ratio(original_tokens, compressed_tokens),
    )


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def compress(
    profile: EntityProfile,
    facts: Sequence[Fact],
    config: CompressionConfig | None = None,
    *,
    as_of: date,
) -> CompressionResult:
    """Compress *profile* and *facts* into bounded natural language."""
    cfg = config or CompressionConfig()
    deduped = semantic_dedup(facts, cfg.dedup_threshold)
    filtered = [fact for fact in deduped if fact.confidence >= cfg.min_confidence]
    selected = select_facts(filtered, cfg.max_facts)
    context = render_context(profile, selected, as_of)
    stats = compute_stats(profile, facts, context)

    return CompressionResult(
        context=context,
        selected_facts=tuple(selected),
        stats=stats,
        breakdown=CompressionBreakdown(
            original_fact_count=len(facts),
            after_dedup_count=len(deduped),
            after_filter_count=len(filtered),
            final_count=len(selected),
        ),
    )


class Compressor:
    """``compress`` bound to one configuration."""

    def __init__(self, config: CompressionConfig | None = None) -> None:
        self.config = config or CompressionConfig()

    def compress(
        self, profile: EntityProfile, facts: Sequence[Fact], *, as_of: date
    ) -> CompressionResult:
        """Run ``compress`` and record its latency."""
        with timed("compression.compress"):
            return compress(profile, facts, self.config, as_of=as_of)

    def fit(
        self,
        profile: EntityProfile,
        facts: Sequence[Fact],
        token_budget: int,
        *,
        as_of: date,
    ) -> str:
        """Compressed text with the lowest-priority facts dropped until it fits.

        The profile lines are never dropped, so the result can still exceed a
        budget smaller than the profile summary itself.
        """
        selected = list(self.compress(profile, facts, as_of=as_of).selected_facts)
        context = render_context(profile, selected, as_of)
        while selected and estimate_tokens(context) > token_budget:
            selected.pop()
            context = render_context(profile, selected, as_of)
        return context
