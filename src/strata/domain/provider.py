"""Domain knowledge provider — read-only knowledge per named domain.

Knowledge is rendered with progressive disclosure: the richest level that
fits the requested budget wins (``full`` > ``terminology`` > ``metadata``);
if even the metadata level is too large, trailing lines are dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from strata.domain.catalog import BUILTIN_DOMAINS
from strata.domain.models import DisclosureLevel
from strata.domain.models import DomainDefinition
from strata.engine.tokens import estimate_tokens
from strata.errors import ConfigurationError
from strata.models.context import DomainContext
from strata.models.context import DomainMatch

logger = logging.getLogger(__name__)


def render_definition(definition: DomainDefinition, level: DisclosureLevel) -> list[str]:
    """Knowledge lines for *definition* at *level*."""
    lines = [f"Domain: {definition.label}"]
    if definition.description:
        lines.append(definition.description)

    if level is DisclosureLevel.metadata:
        if definition.terms:
            lines.append("Terms: " + ", ".join(term.name for term in definition.terms))
        return lines

    if definition.terms:
        lines.append("Terms:")
        lines.extend(f"- {term.name}: {term.description}" for term in definition.terms)

    if level is DisclosureLevel.full:
        if definition.rules:
            lines.append("Rules:")
            lines.extend(f"- {rule.name}: {rule.description}" for rule in definition.rules)
        if definition.required_documents:
            lines.append("Required documents: " + ", ".join(definition.required_documents))
    return lines


class DomainKnowledgeProvider:
    """Serves domain knowledge and routes free text to a domain."""

    def __init__(self, definitions: Iterable[DomainDefinition] | None = None) -> None:
        self._definitions: dict[str, DomainDefinition] = {}
        for definition in BUILTIN_DOMAINS if definitions is None else definitions:
            if definition.domain_id in self._definitions:
                raise ConfigurationError(f"Duplicate domain id: {definition.domain_id}")
            self._definitions[definition.domain_id] = definition

    @property
    def domain_ids(self) -> list[str]:
        return list(self._definitions)

    def definition(self, domain_id: str) -> DomainDefinition:
        try:
            return self._definitions[domain_id]
        except KeyError:
            raise ConfigurationError(f"Unknown domain: {domain_id}") from None

    def lookup(self, domain_id: str) -> DomainContext:
        """Full-level knowledge plus the domain's recommended budget."""
        definition = self.definition(domain_id)
        return DomainContext(
            domain_id=domain_id,
            knowledge="\n".join(render_definition(definition, DisclosureLevel.full)),
            token_budget=definition.token_budget,
        )

    def render(self, domain_id: str, token_budget: int) -> str:
        """Knowledge text that fits *token_budget*, possibly empty."""
        text, _ = self.render_with_level(domain_id, token_budget)
        return text

    def render_with_level(
        self, domain_id: str, token_budget: int
    ) -> tuple[str, DisclosureLevel]:
        definition = self.definition(domain_id)
        for level in DisclosureLevel:
            lines = render_definition(definition, level)
            text = "\n".join(lines)
            if estimate_tokens(text) <= token_budget:
                return text, level

        while lines and estimate_tokens("\n".join(lines)) > token_budget:
            lines.pop()
        logger.debug(
            "Domain %s truncated to %d lines for budget=%d", domain_id, len(lines), token_budget
        )
        return "\n".join(lines), DisclosureLevel.metadata

    def match_by_keywords(self, text: str) -> list[DomainMatch]:
        """Score every domain by the share of its keywords found in *text*.

        Matching is case-insensitive substring search.  Only domains with at
        least one hit are returned, best first; ties keep catalog order.
        """
        lowered = text.lower()
        matches: list[DomainMatch] = []
        for definition in self._definitions.values():
            if not definition.keywords:
                continue
            hits = tuple(kw for kw in definition.keywords if kw.lower() in lowered)
            if hits:
                matches.append(
                    DomainMatch(
                        domain_id=definition.domain_id,
                        score=len(hits) / len(definition.keywords),
                        matched_keywords=hits,
                    )
                )
        matches.sort(key=lambda match: -match.score)
        return matches

    def route(self, text: str, default: str | None = None) -> str | None:
        """Best-matching domain id for *text*, or *default*."""
        matches = self.match_by_keywords(text)
        return matches[0].domain_id if matches else default
