"""Domain layer — static knowledge and keyword routing."""

from __future__ import annotations

from strata.domain.catalog import BUILTIN_DOMAINS
from strata.domain.models import DisclosureLevel
from strata.domain.models import DomainDefinition
from strata.domain.models import DomainRule
from strata.domain.models import DomainTerm
from strata.domain.provider import DomainKnowledgeProvider

__all__ = [
    "BUILTIN_DOMAINS",
    "DisclosureLevel",
    "DomainDefinition",
    "DomainKnowledgeProvider",
    "DomainRule",
    "DomainTerm",
]
