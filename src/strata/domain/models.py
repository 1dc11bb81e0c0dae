"""Static domain definitions — the source a ``DomainContext`` is rendered from."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel
from pydantic import Field


class DisclosureLevel(StrEnum):
    """How much of a domain is rendered, richest first."""

    full = "full"
    terminology = "terminology"
    metadata = "metadata"


class DomainTerm(BaseModel):
    model_config = {"frozen": True}

    name: str
    description: str


class DomainRule(BaseModel):
    """A compliance or writing rule applied to every document in the domain."""

    model_config = {"frozen": True}

    name: str
    description: str


class DomainDefinition(BaseModel):
    model_config = {"frozen": True}

    domain_id: str
    label: str
    description: str = ""
    keywords: tuple[str, ...] = ()
    terms: tuple[DomainTerm, ...] = ()
    rules: tuple[DomainRule, ...] = ()
    required_documents: tuple[str, ...] = ()
    token_budget: int = Field(default=1600, ge=0)
