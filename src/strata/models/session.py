"""Ephemeral session state."""

from __future__ import annotations

from datetime import date
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel
from pydantic import Field


class MessageRole(StrEnum):
    user = "user"
    assistant = "assistant"
    system = "system"


class IntentType(StrEnum):
    document_generation = "document_generation"
    application_review = "application_review"
    program_search = "program_search"
    rejection_analysis = "rejection_analysis"
    question_answer = "question_answer"


class SessionMessage(BaseModel):
    id: str
    role: MessageRole
    content: str
    timestamp: datetime
    tokens: int = Field(default=0, description="Estimated token count.")


class SessionIntent(BaseModel):
    """What the user appears to be doing."""

    type: IntentType = IntentType.question_answer
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    entities: dict[str, str] = Field(default_factory=dict)
    detected_at: datetime | None = None


class ActiveDocument(BaseModel):
    """The document the user is currently working on."""

    id: str
    title: str
    current_section: str | None = None
    completion_percent: int = Field(default=0, ge=0, le=100)
    opened_at: datetime | None = None


class ActiveProgram(BaseModel):
    """The support program the conversation is currently aimed at."""

    id: str
    name: str
    deadline: date | None = None
    match_score: int = Field(default=0, ge=0, le=100, description="Match score, 0-100.")
    selected_at: datetime | None = None


class SessionContext(BaseModel):
    """Conversation/task state for one session; never outlives its TTL."""

    session_id: str
    entity_id: str | None = None
    domain_id: str | None = None
    messages: list[SessionMessage] = Field(default_factory=list)
    intent: SessionIntent | None = None
    active_document: ActiveDocument | None = None
    active_program: ActiveProgram | None = None
    created_at: datetime
    expires_at: datetime

    def is_live(self, now: datetime) -> bool:
        return now < self.expires_at
