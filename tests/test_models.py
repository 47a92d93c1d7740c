"""Tests for core data models."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from a2lfinder.models import (
    BinaryEntry,
    DescriptionEntry,
    Diagnostics,
    IdentifyResult,
    MatchResult,
)


class TestDescriptionEntry:
    """Test DescriptionEntry dataclass."""

    def test_is_frozen(self) -> None:
        """Should reject mutation once built."""
        entry = DescriptionEntry(
            path=Path("/d/x.a2l"),
            label="x",
            directory=Path("/d"),
            identifiers=frozenset({"abcd"}),
            part_numbers=frozenset(),
            software_ids=frozenset(),
            size=10,
        )

        with pytest.raises(dataclasses.FrozenInstanceError):
            entry.label = "y"  # type: ignore[misc]


class TestBinaryEntry:
    """Test BinaryEntry dataclass."""

    def test_association_defaults_empty(self) -> None:
        """Should start unassociated."""
        entry = BinaryEntry(
            path=Path("/d/x.bin"),
            directory=Path("/d"),
            sha1="abc",
            ascii_tokens=frozenset(),
            chunk_hashes=frozenset(),
            kgram_hashes=frozenset(),
            size=0,
        )

        assert entry.associated_descriptions == []


class TestResults:
    """Test result dataclasses."""

    def test_match_result_defaults(self) -> None:
        """Should default reasons and hits to empty lists."""
        match = MatchResult(description_path=Path("/d/x.a2l"), label="x", score=100)

        assert match.reasons == []
        assert match.hits == []

    def test_identify_result_defaults(self) -> None:
        """Should default to no matches and no diagnostics."""
        result = IdentifyResult(ok=True)

        assert result.matches == []
        assert result.diagnostics is None
        assert result.error is None

    def test_diagnostics(self) -> None:
        """Should carry corpus context."""
        diagnostics = Diagnostics(data_root=None, descriptions=0, binaries=0, notes=["hint"])

        assert diagnostics.notes == ["hint"]
