"""Binary fingerprints: exact digest, fixed chunks and sliding k-grams."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from a2lfinder.config import DEFAULT_CHUNK_SIZE, DEFAULT_KGRAM_K, DEFAULT_KGRAM_STEP


def _sha1(data: bytes | memoryview) -> str:
    return hashlib.sha1(data).hexdigest()


def content_hash(data: bytes) -> str:
    """SHA-1 over the whole buffer."""
    return _sha1(data)


def chunk_hashes(data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> set[str]:
    """Hash non-overlapping windows of ``chunk_size`` bytes; the last may be shorter."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    view = memoryview(data)
    return {_sha1(view[start : start + chunk_size]) for start in range(0, len(view), chunk_size)}


def kgram_hashes(
    data: bytes, k: int = DEFAULT_KGRAM_K, step: int = DEFAULT_KGRAM_STEP
) -> set[str]:
    """Hash overlapping windows of ``k`` bytes taken every ``step`` bytes.

    Returns an empty set when the buffer is shorter than ``k``.
    """
    if k <= 0 or step <= 0:
        raise ValueError("k and step must be positive")
    view = memoryview(data)
    return {_sha1(view[start : start + k]) for start in range(0, len(view) - k + 1, step)}


@dataclass(frozen=True, slots=True)
class Fingerprinter:
    """Bundles the sensitivity knobs so callers hash uploads like the corpus."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    k: int = DEFAULT_KGRAM_K
    step: int = DEFAULT_KGRAM_STEP

    def content_hash(self, data: bytes) -> str:
        return content_hash(data)

    def chunk_hashes(self, data: bytes) -> set[str]:
        return chunk_hashes(data, self.chunk_size)

    def kgram_hashes(self, data: bytes) -> set[str]:
        return kgram_hashes(data, self.k, self.step)
