"""Tiered identification of an uploaded firmware image against a corpus."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from a2lfinder.config import DEFAULT_TOP_K
from a2lfinder.fingerprint.similarity import intersect_examples
from a2lfinder.index.corpus import Corpus
from a2lfinder.models import Diagnostics, IdentifyResult, MatchResult, SimilarBinary
from a2lfinder.utils.text import (
    extract_part_numbers,
    extract_printable_runs,
    extract_software_ids,
    lowered,
    tokenize,
)

LOGGER = logging.getLogger(__name__)

EXACT_SCORE = 100
CHUNK_WEIGHT = 60
KGRAM_WEIGHT = 70
TOKEN_WEIGHT = 50

LABEL_POINTS = 15
FOLDER_POINTS = 10
IDENTIFIER_POINTS = 4
PART_NUMBER_POINTS = 8
SOFTWARE_ID_POINTS = 10

MAX_IDENTIFIER_EXAMPLES = 25
MAX_PART_NUMBER_EXAMPLES = 10
MAX_SOFTWARE_ID_EXAMPLES = 10

NO_CANDIDATE_NOTES = (
    "No candidates found. Verify DATA_ROOT and that the indexer ran at startup.",
    "Increase k-gram sensitivity with SIM_KGRAM_STEP=8 and rebuild the index.",
)

# Tier order doubles as the tie-break between equal scores.
TIER_EXACT, TIER_CHUNKS, TIER_KGRAMS, TIER_TOKENS, TIER_METADATA = range(5)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(slots=True)
class UploadSignals:
    """Everything the tiers need from the uploaded buffer and its name."""

    sha1: str
    tokens: set[str]
    part_numbers: set[str]
    software_ids: set[str]
    name_tokens: set[str]

    @classmethod
    def extract(cls, data: bytes, filename: str, sha1: str) -> "UploadSignals":
        runs = extract_printable_runs(data)
        return cls(
            sha1=sha1,
            tokens=tokenize(runs),
            part_numbers=lowered(extract_part_numbers(runs)),
            software_ids=lowered(extract_software_ids(runs)),
            name_tokens=tokenize([filename or ""]),
        )


@dataclass(slots=True)
class _Candidate:
    tier: int
    result: MatchResult

    def sort_key(self) -> tuple[int, int, str]:
        return (-self.result.score, self.tier, str(self.result.description_path))


class Identifier:
    """Ranks description files for an uploaded image.

    Tiers run in priority order (exact hash, fixed chunks, k-grams, ASCII
    tokens, metadata) and a description is reported once, by the first tier
    that surfaces it.
    """

    def __init__(
        self,
        corpus: Corpus,
        *,
        top_k: int = DEFAULT_TOP_K,
        max_results: int = DEFAULT_TOP_K,
    ) -> None:
        self.corpus = corpus
        self.top_k = top_k
        self.max_results = max_results

    def identify(self, data: bytes, filename: str = "") -> IdentifyResult:
        if not data:
            return IdentifyResult(ok=False, error="No file provided")

        sha1 = self.corpus.fingerprinter.content_hash(data)
        upload = UploadSignals.extract(data, filename, sha1)

        candidates: List[_Candidate] = []
        seen: set[Path] = set()

        self._exact_tier(upload, candidates, seen)
        self._similarity_tier(
            self.corpus.find_similar_by_chunks(data, top_k=self.top_k),
            TIER_CHUNKS,
            CHUNK_WEIGHT,
            "Similar to known BIN (fixed chunks)",
            candidates,
            seen,
        )
        self._similarity_tier(
            self.corpus.find_similar_by_kgrams(data, top_k=self.top_k),
            TIER_KGRAMS,
            KGRAM_WEIGHT,
            "Similar to known BIN (k-grams)",
            candidates,
            seen,
        )
        self._similarity_tier(
            self.corpus.find_similar_by_tokens(upload.tokens, top_k=self.top_k),
            TIER_TOKENS,
            TOKEN_WEIGHT,
            "Similar BIN by ASCII tokens",
            candidates,
            seen,
        )
        self._metadata_tier(upload, candidates, seen)

        candidates.sort(key=_Candidate.sort_key)
        matches = [candidate.result for candidate in candidates[: self.max_results]]
        LOGGER.debug("Identified %s (%d bytes): %d candidate(s)", filename, len(data), len(matches))

        result = IdentifyResult(ok=True, sha1=sha1, received_bytes=len(data), matches=matches)
        if not matches:
            result.diagnostics = self.diagnostics()
        return result

    def diagnostics(self) -> Diagnostics:
        return Diagnostics(
            data_root=self.corpus.root,
            descriptions=len(self.corpus.list_descriptions()),
            binaries=len(self.corpus.list_binaries()),
            notes=list(NO_CANDIDATE_NOTES),
        )

    def _add(
        self,
        tier: int,
        result: MatchResult,
        candidates: List[_Candidate],
        seen: set[Path],
    ) -> None:
        candidates.append(_Candidate(tier, result))
        seen.add(result.description_path)

    def _exact_tier(self, upload: UploadSignals, candidates: List[_Candidate], seen: set[Path]) -> None:
        for path in self.corpus.find_by_content_hash(upload.sha1):
            entry = self.corpus.get_description(path)
            if entry is None or path in seen:
                continue
            self._add(
                TIER_EXACT,
                MatchResult(
                    description_path=entry.path,
                    label=entry.label,
                    score=EXACT_SCORE,
                    reasons=[f"Exact BIN hash match: {upload.sha1}"],
                ),
                candidates,
                seen,
            )

    def _similarity_tier(
        self,
        similar: Sequence[SimilarBinary],
        tier: int,
        weight: int,
        reason: str,
        candidates: List[_Candidate],
        seen: set[Path],
    ) -> None:
        for binary in similar:
            for path in self.corpus.find_by_content_hash(binary.sha1):
                if path in seen:
                    continue
                entry = self.corpus.get_description(path)
                if entry is None:
                    continue
                self._add(
                    tier,
                    MatchResult(
                        description_path=entry.path,
                        label=entry.label,
                        score=round_half_up(binary.similarity * weight),
                        reasons=[
                            f"{reason}: {round_half_up(binary.similarity * 100)}%",
                            f"BIN: {binary.binary_path}",
                        ],
                    ),
                    candidates,
                    seen,
                )

    def _metadata_tier(
        self, upload: UploadSignals, candidates: List[_Candidate], seen: set[Path]
    ) -> None:
        for entry in self.corpus.list_descriptions():
            if entry.path in seen:
                continue
            score = 0
            reasons: List[str] = []
            hits: List[str] = []

            if entry.label.lower() in upload.name_tokens:
                score += LABEL_POINTS
                reasons.append(f"Filename token matched label '{entry.label}'")
                hits.append(entry.label)

            folder = entry.directory.name
            if folder and folder.lower() in upload.name_tokens:
                score += FOLDER_POINTS
                reasons.append(f"Filename token matched folder '{folder}'")
                hits.append(folder)

            count, examples = intersect_examples(
                sorted(upload.tokens), entry.identifiers, MAX_IDENTIFIER_EXAMPLES
            )
            if count:
                score += count * IDENTIFIER_POINTS
                reasons.append(f"Matched {count} identifier token(s)")
                hits.extend(examples)

            count, examples = intersect_examples(
                sorted(upload.part_numbers), entry.part_numbers, MAX_PART_NUMBER_EXAMPLES
            )
            if count:
                score += count * PART_NUMBER_POINTS
                reasons.append(f"Matched {count} part number(s)")
                hits.extend(examples)

            count, examples = intersect_examples(
                sorted(upload.software_ids), entry.software_ids, MAX_SOFTWARE_ID_EXAMPLES
            )
            if count:
                score += count * SOFTWARE_ID_POINTS
                reasons.append(f"Matched {count} SW ID(s)")
                hits.extend(examples)

            if score > 0:
                self._add(
                    TIER_METADATA,
                    MatchResult(
                        description_path=entry.path,
                        label=entry.label,
                        score=score,
                        reasons=reasons,
                        hits=hits,
                    ),
                    candidates,
                    seen,
                )


def identify(corpus: Corpus, data: bytes, filename: str = "") -> IdentifyResult:
    return Identifier(corpus).identify(data, filename)
