"""Lexical similarity and semantic deduplication of facts.

Similarity is the Jaccard index over normalized token sets. It is cheap,
deterministic and works the same for Hangul and Latin text, which is all
the dedup step needs.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Sequence

from strata.models.facts import Fact

# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

_NON_WORD_RE = re.compile(r"[^\w\s]")

STOPWORDS = frozenset(
    {
        "및", "의", "등", "를", "이", "가", "은", "는", "에", "로", "와", "과",
        "있는", "있음", "것", "수", "년", "월", "일", "외", "더", "또",
        "the", "and", "or", "is", "are", "in", "to", "for", "of", "a", "an",
    }
)  # fmt: skip


def _words(text: str) -> list[str]:
    return [
        token
        for token in _NON_WORD_RE.sub(" ", text.lower()).split()
        if len(token) > 1 and token not in STOPWORDS
    ]


def tokenize(text: str) -> set[str]:
    """Lowercased content tokens of *text*, without stopwords or 1-char tokens."""
    return set(_words(text))


# ---------------------------------------------------------------------------
# Similarity
# ---------------------------------------------------------------------------


def similarity(a: str, b: str) -> float:
    """Jaccard similarity in ``[0, 1]``.

    Empty input scores 0 and identical input scores 1, even when the
    text has no usable tokens.
    """
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    tokens_a = tokenize(a)
    tokens_b = tokenize(b)
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)


def semantic_dedup(facts: Sequence[Fact], threshold: float = 0.85) -> list[Fact]:
    """Drop facts too similar to a higher-confidence fact already kept.

    Facts are visited by confidence, highest first; ties keep input order.
    """
    if len(facts) <= 1:
        return list(facts)

    kept: list[Fact] = []
    for fact in sorted(facts, key=lambda f: -f.confidence):
        if all(similarity(fact.content, other.content) < threshold for other in kept):
            kept.append(fact)
    return kept


# ---------------------------------------------------------------------------
# Keywords and clustering
# ---------------------------------------------------------------------------


def extract_keywords(text: str, max_keywords: int = 5) -> list[str]:
    """Most frequent content tokens; ties keep first-occurrence order."""
    return [word for word, _ in Counter(_words(text)).most_common(max_keywords)]


def cluster_facts(facts: Sequence[Fact], threshold: float = 0.7) -> list[list[Fact]]:
    """Greedy single-pass clustering: each unassigned fact seeds a cluster."""
    clusters: list[list[Fact]] = []
    assigned: set[str] = set()
    for fact in facts:
        if fact.id in assigned:
            continue
        cluster = [fact]
        assigned.add(fact.id)
        for other in facts:
            if other.id in assigned:
                continue
            if similarity(fact.content, other.content) >= threshold:
                cluster.append(other)
                assigned.add(other.id)
        clusters.append(cluster)
    return clusters


def select_representative(cluster: Sequence[Fact]) -> Fact:
    """Highest-confidence fact of a cluster; the earliest wins ties."""
    best = cluster[0]
    for fact in cluster[1:]:
        if fact.confidence > best.confidence:
            best = fact
    return best


def merge_similar_facts(facts: Sequence[Fact], threshold: float = 0.7) -> list[Fact]:
    """Collapse each similarity cluster into its representative.

    Up to two keywords from the absorbed facts that the representative does
    not already mention are appended as ``(related: ...)``.
    """
    merged: list[Fact] = []
    for cluster in cluster_facts(facts, threshold):
        representative = select_representative(cluster)
        if len(cluster) == 1:
            merged.append(representative)
            continue

        extra: list[str] = []
        for fact in cluster:
            if fact.id == representative.id:
                continue
            for keyword in extract_keywords(fact.content, 2):
                if keyword not in extra and keyword not in representative.content.lower():
                    extra.append(keyword)
        extra = extra[:2]

        if extra:
            content = f"{representative.content} (related: {', '.join(extra)})"
            representative = representative.model_copy(update={"content": content})
        merged.append(representative)
    return merged
