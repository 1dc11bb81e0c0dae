"""Engine domain — token accounting, similarity, compression, prompt formatting.

The assembler lives in ``strata.engine.assembler`` and is not re-exported
here because it depends on the memory layer, which depends on this package.
"""

from __future__ import annotations

from strata.engine.compression import compress
from strata.engine.compression import CompressionBreakdown
from strata.engine.compression import CompressionResult
from strata.engine.compression import Compressor
from strata.engine.compression import select_facts
from strata.engine.prompt_builder import to_prompt
from strata.engine.similarity import cluster_facts
from strata.engine.similarity import extract_keywords
from strata.engine.similarity import merge_similar_facts
from strata.engine.similarity import semantic_dedup
from strata.engine.similarity import similarity
from strata.engine.similarity import tokenize
from strata.engine.tokens import compression_ratio
from strata.engine.tokens import estimate_tokens

__all__ = [
    "CompressionBreakdown",
    "CompressionResult",
    "Compressor",
    "cluster_facts",
    "compress",
    "compression_ratio",
    "estimate_tokens",
    "extract_keywords",
    "merge_similar_facts",
    "select_facts",
    "semantic_dedup",
    "similarity",
    "to_prompt",
    "tokenize",
]
