"""Calibration-description (A2L) parsing.

Only the identifying signals are kept: quoted strings and the lines carrying
project/module/version style keywords, plus any sidecar metadata files that
sit next to the description.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

from a2lfinder.models import DescriptionEntry
from a2lfinder.utils.files import SIDECAR_NAMES, GuardedReader, description_label
from a2lfinder.utils.text import extract_part_numbers, extract_software_ids, lowered, tokenize

LOGGER = logging.getLogger(__name__)

_QUOTED = re.compile(r'"(.*?)"')
_KEYWORD_LINE = re.compile(r"\b(?:PROJECT|MODULE|VERSION|ECU|USER|FUNCTION)\b", re.IGNORECASE)
_LINE_BREAK = re.compile(r"\r?\n")


@dataclass(slots=True)
class Signals:
    """Identifier sets harvested from one or more text sources."""

    identifiers: set[str] = field(default_factory=set)
    part_numbers: set[str] = field(default_factory=set)
    software_ids: set[str] = field(default_factory=set)

    @classmethod
    def from_strings(cls, strings: Iterable[str]) -> "Signals":
        strings = list(strings)
        return cls(
            identifiers=tokenize(strings),
            part_numbers=lowered(extract_part_numbers(strings)),
            software_ids=lowered(extract_software_ids(strings)),
        )

    def merge(self, other: "Signals") -> "Signals":
        return Signals(
            identifiers=self.identifiers | other.identifiers,
            part_numbers=self.part_numbers | other.part_numbers,
            software_ids=self.software_ids | other.software_ids,
        )


def description_strings(text: str) -> List[str]:
    """Quoted substrings followed by every keyword-bearing line."""
    quoted = _QUOTED.findall(text)
    keyword_lines = [line for line in _LINE_BREAK.split(text) if _KEYWORD_LINE.search(line)]
    return quoted + keyword_lines


def load_sidecar_signals(directory: Path, reader: GuardedReader) -> Signals:
    """Collect signals from the known sidecar files present in ``directory``."""
    signals = Signals()
    for name in SIDECAR_NAMES:
        sidecar = directory / name
        if not sidecar.is_file():
            continue
        try:
            text = reader.read_text(sidecar)
        except OSError as exc:
            LOGGER.debug("Ignoring unreadable sidecar %s: %s", sidecar, exc)
            continue
        signals = signals.merge(Signals.from_strings([text]))
    return signals


def parse_description(path: Path, text: str, sidecars: Signals) -> DescriptionEntry:
    """Build a :class:`DescriptionEntry` from already-read description text."""
    signals = Signals.from_strings(description_strings(text)).merge(sidecars)
    return DescriptionEntry(
        path=path,
        label=description_label(path),
        directory=path.parent,
        identifiers=frozenset(signals.identifiers),
        part_numbers=frozenset(signals.part_numbers),
        software_ids=frozenset(signals.software_ids),
        size=len(text.encode("utf-8")),
    )


def load_description(
    path: Path,
    reader: GuardedReader,
    *,
    sidecars: Signals | None = None,
) -> DescriptionEntry:
    """Parse one description file into a :class:`DescriptionEntry`.

    An unreadable file still produces an entry so the directory keeps its
    association target; only the sidecar signals are then available.
    """
    try:
        text = reader.read_text(path)
    except OSError as exc:
        LOGGER.warning("Cannot read A2L %s: %s", path, exc)
        text = ""

    if sidecars is None:
        sidecars = load_sidecar_signals(path.parent, reader)
    return parse_description(path, text, sidecars)
