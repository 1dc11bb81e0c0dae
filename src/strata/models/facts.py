"""Fact model — the atomic unit of entity memory."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel
from pydantic import Field
from pydantic import field_validator


class FactType(StrEnum):
    """Kinds of facts, declared from highest to lowest selection priority.

    ``rank`` is derived from declaration order, so every member has one.
    """

    rejection_pattern = "rejection_pattern"
    success_pattern = "success_pattern"
    capability = "capability"
    application = "application"
    certification = "certification"
    preference = "preference"
    profile = "profile"

    @property
    def rank(self) -> int:
        members = list(FactType)
        return len(members) - members.index(self)


class FactSource(StrEnum):
    """Where a fact came from."""

    user_input = "user_input"
    document_parsed = "document_parsed"
    email_detected = "email_detected"
    ai_inferred = "ai_inferred"


class FactInput(BaseModel):
    """Caller-supplied part of a fact.

    Ranges are not checked here; the store validates when it builds the
    final ``Fact`` so that a bad input never reaches storage.
    """

    type: FactType = FactType.profile
    content: str
    confidence: float = 1.0
    source: FactSource = FactSource.user_input
    expires_at: datetime | None = None
    related_id: str | None = None


class Fact(BaseModel):
    """A typed, confidence-scored statement about an entity."""

    id: str = Field(description="Unique within the owning block.")
    type: FactType = Field(description="Fact category; drives selection priority.")
    content: str = Field(description="Compressed natural-language statement.")
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence in [0, 1].")
    source: FactSource = Field(description="Origin of the fact.")
    created_at: datetime = Field(description="When the fact was recorded.")
    expires_at: datetime | None = Field(
        default=None,
        description="After this instant the fact is eligible for cleanup.",
    )
    related_id: str | None = Field(
        default=None,
        description="Document or event this fact was derived from.",
    )

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content must not be empty")
        return value

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now
