"""Token estimation heuristic.

Dual-width script characters (Hangul, CJK, fullwidth forms) cost roughly
1.5 tokens each; everything else about a quarter of a token.
"""

from __future__ import annotations

import math
import unicodedata

WIDE_CHAR_TOKENS = 1.5
OTHER_CHAR_TOKENS = 0.25


def is_wide(char: str) -> bool:
    return unicodedata.east_asian_width(char) in ("W", "F")


def estimate_tokens(text: str) -> int:
    """Approximate token count of *text*, rounded up."""
    if not text:
        return 0
    wide = sum(1 for char in text if is_wide(char))
    other = len(text) - wide
    return math.ceil(wide * WIDE_CHAR_TOKENS + other * OTHER_CHAR_TOKENS)


def compression_ratio(original_tokens: int, compressed_tokens: int) -> int:
    """Percent of tokens removed, rounded half up and clamped to [0, 100]."""
    if original_tokens <= 0:
        return 0
    percent = (1 - compressed_tokens / original_tokens) * 100
    return min(max(math.floor(percent + 0.5), 0), 100)
