"""Session context manager — TTL-bound ephemeral conversation state.

Expiry is checked lazily when a session is touched: a read at or after
``expires_at`` removes the session and reports it as missing.  Every
mutation slides ``expires_at`` forward by the TTL.  ``sweep_expired`` is
optional housekeeping and takes the same per-session lock as reads.
"""

from __future__ import annotations

import logging
import math
import re
import uuid
from collections.abc import Callable
from datetime import datetime
from datetime import timedelta
from datetime import UTC
from threading import Lock

from strata.config import SessionConfig
from strata.engine.tokens import estimate_tokens
from strata.errors import NotFoundError
from strata.memory.locks import KeyedLock
from strata.models.session import ActiveDocument
from strata.models.session import ActiveProgram
from strata.models.session import IntentType
from strata.models.session import MessageRole
from strata.models.session import SessionContext
from strata.models.session import SessionIntent
from strata.models.session import SessionMessage

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Intent detection
# ---------------------------------------------------------------------------

_INTENT_PATTERNS: tuple[tuple[IntentType, tuple[str, ...], float], ...] = (
    (
        IntentType.document_generation,
        ("제안서", "사업계획서", "신청서", "작성", "생성", "만들어", "proposal", "draft"),
        0.8,
    ),
    (
        IntentType.application_review,
        ("검토", "확인", "피드백", "수정", "보완", "review", "feedback"),
        0.7,
    ),
    (
        IntentType.program_search,
        ("사업", "공고", "지원", "매칭", "찾아", "추천", "program", "grant"),
        0.75,
    ),
    (
        IntentType.rejection_analysis,
        ("탈락", "불합격", "왜", "이유", "분석", "rejected", "rejection"),
        0.85,
    ),
    (
        IntentType.question_answer,
        ("뭐", "어떻게", "무엇", "왜", "언제", "?", "how", "what"),
        0.5,
    ),
)

_PROGRAM_PATTERNS = (
    re.compile(r"AI바우처|스마트공장|TIPS|예비창업패키지|초기창업패키지"),
    re.compile(r"(?:\d{4}년?\s*)?(?:제?\d+차?\s*)?[가-힣]+사업"),
)
_AMOUNT_RE = re.compile(r"\d+(?:,\d{3})*\s*(?:만원|억원|원)")
_DEADLINE_RE = re.compile(r"\d{4}[-./]\d{1,2}[-./]\d{1,2}|\d{1,2}월\s*\d{1,2}일")

_INTENT_DISPLAY_THRESHOLD = 0.5


def extract_entities(content: str) -> dict[str, str]:
    """Pull a program name, amount and deadline out of free text."""
    entities: dict[str, str] = {}
    for pattern in _PROGRAM_PATTERNS:
        match = pattern.search(content)
        if match:
            entities["program"] = match.group(0)
            break
    amount = _AMOUNT_RE.search(content)
    if amount:
        entities["amount"] = amount.group(0)
    deadline = _DEADLINE_RE.search(content)
    if deadline:
        entities["deadline"] = deadline.group(0)
    return entities


def detect_intent(content: str, now: datetime) -> SessionIntent | None:
    """Keyword-based intent guess; ``None`` when nothing matches.

    Each pattern scores ``base * (1 + 0.1 * matches)`` capped at 1.0; the
    first pattern with the strictly highest score wins.
    """
    lowered = content.lower()
    best: tuple[IntentType, float] | None = None
    for intent_type, keywords, base in _INTENT_PATTERNS:
        matches = sum(1 for keyword in keywords if keyword in lowered)
        if not matches:
            continue
        score = min(base * (1 + matches * 0.1), 1.0)
        if best is None or score > best[1]:
            best = (intent_type, score)

    if best is None:
        return None
    return SessionIntent(
        type=best[0],
        confidence=best[1],
        entities=extract_entities(content),
        detected_at=now,
    )


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _header_lines(session: SessionContext) -> list[str]:
    lines: list[str] = []
    intent = session.intent
    if intent is not None and intent.confidence > _INTENT_DISPLAY_THRESHOLD:
        lines.append(
            f"[Intent: {intent.type.value} ({math.floor(intent.confidence * 100 + 0.5)}%)]"
        )
    document = session.active_document
    if document is not None:
        section = f", section {document.current_section}" if document.current_section else ""
        lines.append(
            f"[Document: {document.title} ({document.completion_percent}% complete{section})]"
        )
    program = session.active_program
    if program is not None:
        details = f"match {program.match_score}%"
        if program.deadline is not None:
            details += f", deadline {program.deadline.isoformat()}"
        lines.append(f"[Program: {program.name} ({details})]")
    return lines


def _message_line(message: SessionMessage) -> str:
    return f"{message.role.value}: {message.content}"


def render_session(
    session: SessionContext,
    token_budget: int | None = None,
    *,
    message_limit: int | None = None,
) -> tuple[str, int]:
    """Render *session* as text; returns ``(text, dropped_message_count)``.

    Session text is never compressed.  Over budget, the oldest messages go
    first; if the header alone still does not fit, the layer renders empty.
    """
    messages = list(session.messages)
    if message_limit is not None:
        messages = messages[len(messages) - message_limit :] if message_limit else []
    header = _header_lines(session)

    def _text() -> str:
        return "\n".join([*header, *(_message_line(m) for m in messages)])

    text = _text()
    if token_budget is not None:
        while messages and estimate_tokens(text) > token_budget:
            messages.pop(0)
            text = _text()
        if estimate_tokens(text) > token_budget:
            text = ""
    return text, len(session.messages) - len(messages)


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


class SessionContextManager:
    """In-process, TTL-bound store of ``SessionContext`` objects."""

    def __init__(
        self,
        config: SessionConfig | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config or SessionConfig()
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._ttl = timedelta(seconds=self._config.ttl_seconds)
        self._locks = KeyedLock()
        self._index_lock = Lock()
        self._sessions: dict[str, SessionContext] = {}

    # -- lifecycle --

    def create(
        self,
        session_id: str | None = None,
        *,
        entity_id: str | None = None,
        domain_id: str | None = None,
    ) -> SessionContext:
        """Start a session (replacing any with the same id)."""
        session_id = session_id or f"session_{uuid.uuid4().hex}"
        now = self._clock()
        session = SessionContext(
            session_id=session_id,
            entity_id=entity_id,
            domain_id=domain_id,
            created_at=now,
            expires_at=now + self._ttl,
        )
        with self._locks.hold(session_id):
            self._put(session)
        logger.debug("Created session %s expires_at=%s", session_id, session.expires_at)
        return session.model_copy(deep=True)

    def get(self, session_id: str) -> SessionContext | None:
        """Return a copy of the live session, or ``None`` if missing or expired."""
        with self._locks.hold(session_id):
            session = self._live(session_id, self._clock())
            return session.model_copy(deep=True) if session is not None else None

    def destroy(self, session_id: str) -> bool:
        with self._locks.hold(session_id):
            with self._index_lock:
                return self._sessions.pop(session_id, None) is not None

    def sweep_expired(self) -> int:
        """Remove every expired session; returns how many were removed."""
        with self._index_lock:
            candidates = list(self._sessions)
        removed = 0
        for session_id in candidates:
            with self._locks.hold(session_id):
                with self._index_lock:
                    session = self._sessions.get(session_id)
                    if session is not None and not session.is_live(self._clock()):
                        del self._sessions[session_id]
                        removed += 1
        if removed:
            logger.info("Swept %d expired sessions", removed)
        return removed

    def active_count(self) -> int:
        now = self._clock()
        with self._index_lock:
            return sum(1 for session in self._sessions.values() if session.is_live(now))

    # -- mutators (each slides the TTL) --

    def append_message(
        self, session_id: str, role: MessageRole | str, content: str
    ) -> SessionMessage:
        """Append a message, dropping the oldest beyond ``max_messages``.

        User messages also refresh the detected intent when one is found.
        """
        role = MessageRole(role)
        with self._locks.hold(session_id):
            now = self._clock()
            session = self._require(session_id, now)
            message = SessionMessage(
                id=f"msg_{uuid.uuid4().hex}",
                role=role,
                content=content,
                timestamp=now,
                tokens=estimate_tokens(content),
            )
            session.messages.append(message)
            overflow = len(session.messages) - self._config.max_messages
            if overflow > 0:
                del session.messages[:overflow]
            if role is MessageRole.user:
                intent = detect_intent(content, now)
                if intent is not None:
                    session.intent = intent
            self._touch(session, now)
        return message.model_copy()

    def set_intent(self, session_id: str, intent: SessionIntent) -> SessionContext:
        with self._locks.hold(session_id):
            now = self._clock()
            session = self._require(session_id, now)
            session.intent = intent.model_copy(update={"detected_at": intent.detected_at or now})
            self._touch(session, now)
            return session.model_copy(deep=True)

    def set_active_document(
        self, session_id: str, document: ActiveDocument | None
    ) -> SessionContext:
        """Set (or with ``None`` clear) the document being worked on."""
        with self._locks.hold(session_id):
            now = self._clock()
            session = self._require(session_id, now)
            if document is not None and document.opened_at is None:
                document = document.model_copy(update={"opened_at": now})
            session.active_document = document
            self._touch(session, now)
            return session.model_copy(deep=True)

    def set_active_program(
        self, session_id: str, program: ActiveProgram | None
    ) -> SessionContext:
        """Set (or with ``None`` clear) the program the user is targeting."""
        with self._locks.hold(session_id):
            now = self._clock()
            session = self._require(session_id, now)
            if program is not None and program.selected_at is None:
                program = program.model_copy(update={"selected_at": now})
            session.active_program = program
            self._touch(session, now)
            return session.model_copy(deep=True)

    # -- reads --

    def get_recent_messages(self, session_id: str, limit: int = 10) -> list[SessionMessage]:
        session = self.get(session_id)
        if session is None or limit <= 0:
            return []
        return session.messages[-limit:]

    def render(
        self,
        session_id: str,
        token_budget: int | None = None,
        *,
        message_limit: int | None = None,
    ) -> tuple[str, int]:
        """Render a live session; ``("", 0)`` when it is missing or expired."""
        session = self.get(session_id)
        if session is None:
            return "", 0
        return render_session(session, token_budget, message_limit=message_limit)

    # -- internal (caller holds the session lock) --

    def _put(self, session: SessionContext) -> None:
        with self._index_lock:
            self._sessions[session.session_id] = session

    def _live(self, session_id: str, now: datetime) -> SessionContext | None:
        with self._index_lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if not session.is_live(now):
                del self._sessions[session_id]
                logger.debug("Session %s expired at %s", session_id, session.expires_at)
                return None
            return session

    def _require(self, session_id: str, now: datetime) -> SessionContext:
        session = self._live(session_id, now)
        if session is None:
            raise NotFoundError(f"Session not found: {session_id}")
        return session

    def _touch(self, session: SessionContext, now: datetime) -> None:
        session.expires_at = now + self._ttl
