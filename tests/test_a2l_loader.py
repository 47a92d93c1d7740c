"""Tests for A2L description parsing."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from a2lfinder.ingestion.a2l_loader import (
    Signals,
    description_strings,
    load_description,
    load_sidecar_signals,
)
from a2lfinder.utils.files import GuardedReader

SAMPLE_A2L = """ASAP2_VERSION 1 60
/begin PROJECT EDC17C64 "Diesel control unit"
  /begin MODULE DIM "SW 1037508389"
    /begin CHARACTERISTIC KFMSWUP "torque limiter" VALUE 0x1234
    /end CHARACTERISTIC
  /end MODULE
/end PROJECT
"""


class TestDescriptionStrings:
    """Test description_strings function."""

    def test_quoted_and_keyword_lines(self) -> None:
        """Should collect quoted text and keyword-bearing lines."""
        strings = description_strings(SAMPLE_A2L)

        assert "Diesel control unit" in strings
        assert "torque limiter" in strings
        assert any(line.startswith("/begin PROJECT") for line in strings)
        assert any("MODULE DIM" in line for line in strings)
        assert not any("CHARACTERISTIC" in line for line in strings)

    def test_keywords_whole_word_only(self) -> None:
        """Should not treat substrings of longer words as keywords."""
        assert description_strings("PROJECTS here\nECUs there") == []

    def test_crlf_lines(self) -> None:
        """Should split on CRLF as well as LF."""
        assert description_strings("VERSION 1\r\nother") == ["VERSION 1"]


class TestSignals:
    """Test Signals helpers."""

    def test_from_strings_lower_cases_identifiers(self) -> None:
        """Should lower-case part numbers and software ids."""
        signals = Signals.from_strings(["03L906018AB SW 1037508389"])

        assert signals.part_numbers == {"03l906018ab"}
        assert signals.software_ids == {"1037508389"}
        assert "03l906018ab" in signals.identifiers

    def test_merge_unions(self) -> None:
        """Should union every set."""
        merged = Signals({"aaaa"}, {"p1"}, set()).merge(Signals({"bbbb"}, set(), {"s1"}))

        assert merged.identifiers == {"aaaa", "bbbb"}
        assert merged.part_numbers == {"p1"}
        assert merged.software_ids == {"s1"}


class TestLoadDescription:
    """Test load_description function."""

    def test_builds_entry(self, tmp_path: Path) -> None:
        """Should parse label, directory, signals and size."""
        a2l = tmp_path / "EDC17C64.a2l"
        a2l.write_text(SAMPLE_A2L, encoding="utf-8")

        with GuardedReader() as reader:
            entry = load_description(a2l, reader)

        assert entry.label == "EDC17C64"
        assert entry.directory == tmp_path
        assert entry.path == a2l
        assert "edc17c64" in entry.identifiers
        assert "diesel" in entry.identifiers
        assert entry.software_ids == {"1037508389"}
        assert entry.size == len(SAMPLE_A2L.encode("utf-8"))

    def test_merges_sidecars(self, tmp_path: Path) -> None:
        """Should union signals from EPK.txt, ident.txt and minmax.csv."""
        a2l = tmp_path / "ecu.a2l"
        a2l.write_text('/begin PROJECT P "x"\n', encoding="utf-8")
        (tmp_path / "EPK.txt").write_text("EPK 03L906018AB", encoding="utf-8")
        (tmp_path / "ident.txt").write_text("SWID 1037512345", encoding="utf-8")
        (tmp_path / "minmax.csv").write_text("boost_pressure,0,2500", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("ignoredtoken", encoding="utf-8")

        with GuardedReader() as reader:
            entry = load_description(a2l, reader)

        assert "03l906018ab" in entry.part_numbers
        assert "1037512345" in entry.software_ids
        assert {"boost", "pressure", "2500"} <= entry.identifiers
        assert "ignoredtoken" not in entry.identifiers

    def test_unreadable_description_keeps_entry(self, tmp_path: Path) -> None:
        """Should still produce an entry with sidecar signals when the A2L fails."""
        a2l = tmp_path / "broken.a2l"
        a2l.write_text("irrelevant", encoding="utf-8")
        sidecars = Signals({"sidecar"}, set(), set())

        with GuardedReader() as reader:
            with patch.object(reader, "read_text", side_effect=PermissionError("denied")):
                entry = load_description(a2l, reader, sidecars=sidecars)

        assert entry.label == "broken"
        assert entry.identifiers == frozenset({"sidecar"})
        assert entry.size == 0

    def test_sidecar_signals_absent(self, tmp_path: Path) -> None:
        """Should return empty signals when no sidecar exists."""
        with GuardedReader() as reader:
            signals = load_sidecar_signals(tmp_path, reader)

        assert signals == Signals()
