"""Models domain — shared data models for every layer."""

from __future__ import annotations

from strata.models.blocks import BlockUpdate
from strata.models.blocks import CompressionStats
from strata.models.blocks import EntityMemoryBlock
from strata.models.context import AssembledContext
from strata.models.context import AssemblyMetadata
from strata.models.context import AssemblyOptions
from strata.models.context import DomainContext
from strata.models.context import DomainMatch
from strata.models.context import LayerBudgets
from strata.models.context import LayersPresent
from strata.models.context import TokenBreakdown
from strata.models.events import ApplicationOutcomeEvent
from strata.models.events import FailurePatternEvent
from strata.models.events import LearningEvent
from strata.models.facts import Fact
from strata.models.facts import FactInput
from strata.models.facts import FactSource
from strata.models.facts import FactType
from strata.models.profile import ApplicationHistory
from strata.models.profile import ApplicationRecord
from strata.models.profile import BasicInfo
from strata.models.profile import EntityProfile
from strata.models.profile import Qualifications
from strata.models.session import ActiveDocument
from strata.models.session import ActiveProgram
from strata.models.session import IntentType
from strata.models.session import MessageRole
from strata.models.session import SessionContext
from strata.models.session import SessionIntent
from strata.models.session import SessionMessage

__all__ = [
    "ActiveDocument",
    "ActiveProgram",
    "ApplicationHistory",
    "ApplicationOutcomeEvent",
    "ApplicationRecord",
    "AssembledContext",
    "AssemblyMetadata",
    "AssemblyOptions",
    "BasicInfo",
    "BlockUpdate",
    "CompressionStats",
    "DomainContext",
    "DomainMatch",
    "EntityMemoryBlock",
    "EntityProfile",
    "Fact",
    "FactInput",
    "FactSource",
    "FactType",
    "FailurePatternEvent",
    "IntentType",
    "LayerBudgets",
    "LayersPresent",
    "LearningEvent",
    "MessageRole",
    "Qualifications",
    "SessionContext",
    "SessionIntent",
    "SessionMessage",
    "TokenBreakdown",
]
