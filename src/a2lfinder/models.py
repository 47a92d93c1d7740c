"""Core A2LFinder data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True, slots=True)
class DescriptionEntry:
    """Signals parsed from one calibration-description (A2L) file."""

    path: Path
    label: str
    directory: Path
    identifiers: frozenset[str]
    part_numbers: frozenset[str]
    software_ids: frozenset[str]
    size: int


@dataclass(slots=True)
class BinaryEntry:
    """Fingerprints of one indexed firmware image.

    ``associated_descriptions`` is filled once by the association pass.
    """

    path: Path
    directory: Path
    sha1: str
    ascii_tokens: frozenset[str]
    chunk_hashes: frozenset[str]
    kgram_hashes: frozenset[str]
    size: int
    associated_descriptions: List[Path] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class SimilarBinary:
    binary_path: Path
    directory: Path
    sha1: str
    similarity: float


@dataclass(slots=True)
class MatchResult:
    """Candidate description file for an uploaded image."""

    description_path: Path
    label: str
    score: int
    reasons: List[str] = field(default_factory=list)
    hits: List[str] = field(default_factory=list)


@dataclass(slots=True)
class Diagnostics:
    data_root: Optional[Path]
    descriptions: int
    binaries: int
    notes: List[str] = field(default_factory=list)


@dataclass(slots=True)
class IdentifyResult:
    """Outcome of one identification request."""

    ok: bool
    sha1: str | None = None
    received_bytes: int = 0
    matches: List[MatchResult] = field(default_factory=list)
    diagnostics: Diagnostics | None = None
    error: str | None = None
