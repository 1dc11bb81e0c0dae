"""Entity memory store — CRUD over per-entity memory blocks.

Every write is a read-modify-write cycle against the backend, performed
under a per-entity lock so concurrent ``add_fact``/``remove_fact`` calls on
the same entity cannot lose updates.  Reads take a snapshot under the same
lock and do any compression work after releasing it.

Write-style calls (``update``, ``add_fact``, ``consolidate_facts``) raise
``NotFoundError`` for an unknown entity.  Read-style calls degrade to an
empty result instead, and ``learn_from_event`` quietly does nothing.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from collections.abc import Collection
from collections.abc import Mapping
from datetime import date
from datetime import datetime
from datetime import UTC
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from strata.config import CompressionConfig
from strata.config import StoreConfig
from strata.engine.compression import CompressionResult
from strata.engine.compression import Compressor
from strata.engine.similarity import merge_similar_facts
from strata.errors import ConflictError
from strata.errors import NotFoundError
from strata.errors import ValidationError
from strata.memory.backends import BlockBackend
from strata.memory.backends import InMemoryBlockBackend
from strata.memory.locks import KeyedLock
from strata.models.blocks import BlockUpdate
from strata.models.blocks import EntityMemoryBlock
from strata.models.events import ApplicationOutcomeEvent
from strata.models.events import FailurePatternEvent
from strata.models.events import learning_event_adapter
from strata.models.facts import Fact
from strata.models.facts import FactInput
from strata.models.facts import FactSource
from strata.models.facts import FactType
from strata.models.profile import EntityProfile

logger = logging.getLogger(__name__)

_SEEDED_CERTIFICATIONS = 3
_SEEDED_REJECTIONS = 3


def _new_fact_id() -> str:
    return f"fact_{uuid.uuid4().hex}"


def _validation_message(exc: PydanticValidationError) -> str:
    err = exc.errors()[0] if exc.errors() else {}
    loc = ".".join(str(part) for part in err.get("loc", ()))
    msg = str(err.get("msg", "Invalid input"))
    return f"{loc}: {msg}" if loc else msg


def _month(value: date) -> str:
    return value.strftime("%Y-%m")


class EntityMemoryStore:
    """Owns entity memory blocks and compresses them on demand."""

    def __init__(
        self,
        backend: BlockBackend | None = None,
        *,
        compression: CompressionConfig | None = None,
        config: StoreConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._backend = backend if backend is not None else InMemoryBlockBackend()
        self._compressor = Compressor(compression)
        self._config = config or StoreConfig()
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._locks = KeyedLock()

    @property
    def compression_config(self) -> CompressionConfig:
        return self._compressor.config

    # -- lifecycle --

    def create(self, profile: EntityProfile) -> EntityMemoryBlock:
        """Build and store a fresh block for ``profile.id``.

        An existing block is replaced unless ``overwrite_on_create`` is off,
        in which case ``ConflictError`` is raised.
        """
        entity_id = profile.id
        with self._locks.hold(entity_id):
            exists = self._backend.get(entity_id) is not None
            if exists and not self._config.overwrite_on_create:
                raise ConflictError(f"Entity already exists: {entity_id}")

            now = self._clock()
            facts = self._seed_facts(profile, now) if self._config.seed_from_profile else []
            block = EntityMemoryBlock(
                entity_id=entity_id,
                profile=profile,
                facts=facts,
                updated_at=now,
            )
            block = self._save(block, now)

        logger.info(
            "%s memory block entity=%s seeded_facts=%d",
            "Replaced" if exists else "Created",
            entity_id,
            len(facts),
        )
        return block

    def get(self, entity_id: str) -> EntityMemoryBlock | None:
        with self._locks.hold(entity_id):
            return self._backend.get(entity_id)

    def delete(self, entity_id: str) -> bool:
        with self._locks.hold(entity_id):
            removed = self._backend.delete(entity_id)
        if removed:
            logger.info("Deleted memory block entity=%s", entity_id)
        return removed

    def update(
        self, entity_id: str, changes: BlockUpdate | Mapping[str, Any]
    ) -> EntityMemoryBlock:
        """Replace the profile and/or fact list of an existing block."""
        try:
            update = (
                changes
                if isinstance(changes, BlockUpdate)
                else BlockUpdate.model_validate(changes)
            )
        except PydanticValidationError as exc:
            raise ValidationError(_validation_message(exc)) from exc
        if update.profile is not None and update.profile.id != entity_id:
            raise ValidationError("profile.id must match the entity id")

        with self._locks.hold(entity_id):
            block = self._require(entity_id)
            if update.profile is not None:
                block.profile = update.profile
            if update.facts is not None:
                block.facts = list(update.facts)
            return self._save(block, self._clock())

    def list_ids(self) -> list[str]:
        return sorted(self._backend.keys())

    # -- facts --

    def add_fact(self, entity_id: str, fact: FactInput | Mapping[str, Any]) -> Fact:
        """Validate, stamp and append a fact. Each call appends a new fact."""
        now = self._clock()
        new_fact = self._build_fact(fact, now)
        with self._locks.hold(entity_id):
            block = self._require(entity_id)
            block.facts.append(new_fact)
            self._save(block, now)
        logger.debug(
            "Added fact entity=%s fact=%s type=%s", entity_id, new_fact.id, new_fact.type
        )
        return new_fact

    def get_facts(
        self, entity_id: str, types: Collection[FactType | str] | None = None
    ) -> list[Fact]:
        block = self.get(entity_id)
        if block is None:
            return []
        if not types:
            return block.facts
        try:
            wanted = {FactType(t) for t in types}
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        return [fact for fact in block.facts if fact.type in wanted]

    def remove_fact(self, entity_id: str, fact_id: str) -> bool:
        with self._locks.hold(entity_id):
            block = self._backend.get(entity_id)
            if block is None:
                return False
            kept = [fact for fact in block.facts if fact.id != fact_id]
            if len(kept) == len(block.facts):
                return False
            block.facts = kept
            self._save(block, self._clock())
        return True

    def cleanup_expired_facts(self, entity_id: str) -> int:
        """Drop facts whose ``expires_at`` has passed; returns how many."""
        with self._locks.hold(entity_id):
            block = self._backend.get(entity_id)
            if block is None:
                return 0
            now = self._clock()
            kept = [fact for fact in block.facts if not fact.is_expired(now)]
            removed = len(block.facts) - len(kept)
            if removed:
                block.facts = kept
                self._save(block, now)
        if removed:
            logger.info("Expired %d facts entity=%s", removed, entity_id)
        return removed

    def consolidate_facts(self, entity_id: str, threshold: float = 0.7) -> int:
        """Merge clusters of similar facts; returns the number merged away."""
        with self._locks.hold(entity_id):
            block = self._require(entity_id)
            merged = merge_similar_facts(block.facts, threshold)
            removed = len(block.facts) - len(merged)
            if removed:
                block.facts = merged
                self._save(block, self._clock())
        return removed

    # -- compression --

    def compress(self, entity_id: str) -> CompressionResult | None:
        block = self.get(entity_id)
        if block is None:
            return None
        return self._compressor.compress(
            block.profile, block.facts, as_of=self._clock().date()
        )

    def get_compressed_context(
        self, entity_id: str, token_budget: int | None = None
    ) -> str:
        """Compressed text for the entity, ``""`` when it does not exist.

        With a budget, the lowest-priority selected facts are dropped one at
        a time until the text fits or no facts remain.
        """
        block = self.get(entity_id)
        if block is None:
            return ""
        as_of = self._clock().date()
        if token_budget is None:
            return self._compressor.compress(block.profile, block.facts, as_of=as_of).context
        return self._compressor.fit(block.profile, block.facts, token_budget, as_of=as_of)

    # -- learning --

    def learn_from_event(
        self,
        entity_id: str,
        event: ApplicationOutcomeEvent | FailurePatternEvent | Mapping[str, Any],
    ) -> Fact | None:
        """Record a fact derived from a workflow event.

        Fire-and-forget: an unknown entity is not an error here.
        """
        try:
            parsed = learning_event_adapter.validate_python(event)
        except PydanticValidationError as exc:
            raise ValidationError(_validation_message(exc)) from exc

        if self.get(entity_id) is None:
            logger.debug("Skipping %s event for unknown entity=%s", parsed.kind, entity_id)
            return None

        try:
            return self.add_fact(entity_id, self._fact_from_event(parsed))
        except NotFoundError:
            logger.debug("Entity %s vanished before %s event was stored", entity_id, parsed.kind)
            return None

    @staticmethod
    def _fact_from_event(event: ApplicationOutcomeEvent | FailurePatternEvent) -> FactInput:
        if isinstance(event, FailurePatternEvent):
            return FactInput(
                type=FactType.rejection_pattern,
                content=f"{event.category} caution: {event.prevention}",
                confidence=event.confidence,
                source=event.source,
                related_id=event.related_id,
            )

        when = _month(event.applied_at)
        if event.result == "selected":
            amount = f"{event.amount:,}" if event.amount is not None else "amount unknown"
            content = f"{event.program_name} selected ({amount}, {when})"
        elif event.result == "rejected":
            reason = event.rejection_reason or "reason unknown"
            content = f"{event.program_name} rejected ({reason}, {when})"
        else:
            content = f"{event.program_name} {event.result} ({when})"
        return FactInput(
            type=FactType.application,
            content=content,
            confidence=1.0,
            source=FactSource.document_parsed,
            related_id=event.related_id,
        )

    # -- internal --

    def _require(self, entity_id: str) -> EntityMemoryBlock:
        block = self._backend.get(entity_id)
        if block is None:
            raise NotFoundError(f"Entity not found: {entity_id}")
        return block

    def _save(self, block: EntityMemoryBlock, now: datetime) -> EntityMemoryBlock:
        """Refresh timestamp and stats, then persist. Caller holds the lock."""
        block.updated_at = now
        block.compression_stats = self._compressor.compress(
            block.profile, block.facts, as_of=now.date()
        ).stats
        self._backend.put(block.entity_id, block)
        return block

    @staticmethod
    def _build_fact(data: FactInput | Mapping[str, Any], now: datetime) -> Fact:
        try:
            fact_input = (
                data if isinstance(data, FactInput) else FactInput.model_validate(data)
            )
            return Fact(id=_new_fact_id(), created_at=now, **fact_input.model_dump())
        except PydanticValidationError as exc:
            raise ValidationError(_validation_message(exc)) from exc

    @staticmethod
    def _seed_facts(profile: EntityProfile, now: datetime) -> list[Fact]:
        """Initial facts derived from certifications, IP and recent rejections."""
        facts: list[Fact] = []
        quals = profile.qualifications

        if quals.certifications:
            listed = ", ".join(quals.certifications[:_SEEDED_CERTIFICATIONS])
            facts.append(
                Fact(
                    id=_new_fact_id(),
                    type=FactType.certification,
                    content=f"{listed} ({len(quals.certifications)} certifications held)",
                    confidence=1.0,
                    source=FactSource.user_input,
                    created_at=now,
                )
            )

        if quals.patents or quals.trademarks:
            facts.append(
                Fact(
                    id=_new_fact_id(),
                    type=FactType.capability,
                    content=f"{quals.patents} patents, {quals.trademarks} trademarks held",
                    confidence=1.0,
                    source=FactSource.user_input,
                    created_at=now,
                )
            )

        rejections = [
            app for app in profile.history.applications if app.result == "rejected"
        ][-_SEEDED_REJECTIONS:]
        for app in rejections:
            reason = app.rejection_reason or "reason unknown"
            facts.append(
                Fact(
                    id=_new_fact_id(),
                    type=FactType.rejection_pattern,
                    content=f"{app.program_name} rejected: {reason} ({_month(app.applied_at)})",
                    confidence=0.9,
                    source=FactSource.document_parsed,
                    created_at=now,
                    related_id=app.id,
                )
            )
        return facts
