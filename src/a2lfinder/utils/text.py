"""Text signal helpers: printable runs, tokens and ECU identifiers."""

from __future__ import annotations

import re
from typing import Iterable, Iterator

MIN_RUN_LENGTH = 4
MIN_TOKEN_LENGTH = 4

_TOKEN_SPLIT = re.compile(r"[^A-Za-z0-9]+")

# Underscore counts as a boundary here, so "ECU_1037508389" still yields the SW ID.
_PART_NUMBER = re.compile(
    r"(?<![A-Za-z0-9])"
    r"(?:0[0-9A-Z][A-Z0-9]{8,}|03L9\d{6}[A-Z]{0,2}|0769\d{6}[A-Z]{0,2})"
    r"(?![A-Za-z0-9])",
    re.IGNORECASE,
)
_SOFTWARE_ID = re.compile(r"(?<![A-Za-z0-9])1037\d{4,}(?![A-Za-z0-9])")


def _run_pattern(min_length: int) -> re.Pattern[bytes]:
    return re.compile(rb"[\x20-\x7e]{%d,}" % max(min_length, 1))


_DEFAULT_RUN = _run_pattern(MIN_RUN_LENGTH)


def iter_printable_runs(data: bytes, *, min_length: int = MIN_RUN_LENGTH) -> Iterator[str]:
    """Yield runs of printable ASCII (bytes 32-126) of at least ``min_length`` characters."""
    pattern = _DEFAULT_RUN if min_length == MIN_RUN_LENGTH else _run_pattern(min_length)
    for match in pattern.finditer(data):
        yield match.group().decode("ascii")


def extract_printable_runs(data: bytes, *, min_length: int = MIN_RUN_LENGTH) -> list[str]:
    return list(iter_printable_runs(data, min_length=min_length))


def tokenize(strings: Iterable[str]) -> set[str]:
    """Split on non-alphanumerics and keep lower-cased pieces of 4+ characters."""
    tokens: set[str] = set()
    for text in strings:
        for piece in _TOKEN_SPLIT.split(text):
            if len(piece) >= MIN_TOKEN_LENGTH:
                tokens.add(piece.lower())
    return tokens


def extract_part_numbers(strings: Iterable[str]) -> set[str]:
    """Return part numbers verbatim; callers lower-case them before storage."""
    found: set[str] = set()
    for text in strings:
        found.update(_PART_NUMBER.findall(text))
    return found


def extract_software_ids(strings: Iterable[str]) -> set[str]:
    found: set[str] = set()
    for text in strings:
        found.update(_SOFTWARE_ID.findall(text))
    return found


def lowered(values: Iterable[str]) -> set[str]:
    return {value.lower() for value in values}
