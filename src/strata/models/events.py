"""Structured events the store learns facts from."""

from __future__ import annotations

from datetime import date
from typing import Annotated
from typing import Literal

from pydantic import BaseModel
from pydantic import Field
from pydantic import TypeAdapter

from strata.models.facts import FactSource


class ApplicationOutcomeEvent(BaseModel):
    """A program application reached a result."""

    kind: Literal["application_outcome"] = "application_outcome"
    program_name: str
    result: str = Field(description="selected, rejected, pending, ...")
    applied_at: date
    amount: int | None = Field(default=None, description="Awarded amount.")
    rejection_reason: str | None = None
    related_id: str | None = None


class FailurePatternEvent(BaseModel):
    """A recurring failure cause was detected for the entity."""

    kind: Literal["failure_pattern"] = "failure_pattern"
    category: str
    prevention: str
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    source: FactSource = FactSource.ai_inferred
    related_id: str | None = None


LearningEvent = Annotated[
    ApplicationOutcomeEvent | FailurePatternEvent,
    Field(discriminator="kind"),
]

learning_event_adapter: TypeAdapter[ApplicationOutcomeEvent | FailurePatternEvent] = (
    TypeAdapter(LearningEvent)
)
