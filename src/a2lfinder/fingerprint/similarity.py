"""Set similarity primitives."""

from __future__ import annotations

from typing import AbstractSet, Collection, Iterable


def jaccard(left: AbstractSet[str], right: AbstractSet[str]) -> float:
    """Intersection over union; two empty sets are identical."""
    if not left and not right:
        return 1.0
    shared = len(left & right)
    union = len(left) + len(right) - shared
    return shared / union if union else 0.0


def overlap_coefficient(upload: AbstractSet[str], known: AbstractSet[str]) -> tuple[int, int]:
    """Return ``(matched, denominator)`` with the denominator floored at 1."""
    matched = len(upload & known)
    denominator = min(len(upload), len(known)) or 1
    return matched, denominator


def intersect_examples(
    candidates: Iterable[str], known: Collection[str], max_examples: int
) -> tuple[int, list[str]]:
    """Count members of ``candidates`` found in ``known``; keep up to ``max_examples``."""
    count = 0
    examples: list[str] = []
    for value in candidates:
        if value in known:
            count += 1
            if len(examples) < max_examples:
                examples.append(value)
    return count, examples
