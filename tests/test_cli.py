"""Tests for CLI commands."""

from __future__ import annotations

import logging
import random
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console
from typer.testing import CliRunner

from a2lfinder.cli import _load_config, _setup_logging, app
from a2lfinder.fingerprint.hashing import content_hash

runner = CliRunner()


@pytest.fixture(autouse=True)
def _wide_console():
    with patch("a2lfinder.cli.console", Console(width=500)):
        yield


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DATA_ROOT", "SIM_CHUNK_SIZE", "SIM_KGRAM_K", "SIM_KGRAM_STEP"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def image() -> bytes:
    rng = random.Random(3)
    return bytes(rng.randrange(128, 256) for _ in range(4096))


@pytest.fixture
def root(tmp_path: Path, image: bytes) -> Path:
    corpus_root = tmp_path / "corpus"
    (corpus_root / "golf").mkdir(parents=True)
    (corpus_root / "golf" / "ref.bin").write_bytes(image)
    (corpus_root / "golf" / "ref.a2l").write_text('/begin PROJECT golf "x"\n', encoding="utf-8")
    return corpus_root


class TestSetupLogging:
    """Tests for _setup_logging helper."""

    def test_setup_logging_verbose(self) -> None:
        """Verbose mode sets DEBUG level."""
        with patch("a2lfinder.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=True)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.DEBUG

    def test_setup_logging_normal(self) -> None:
        """Normal mode sets INFO level."""
        with patch("a2lfinder.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=False)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.INFO


class TestLoadConfig:
    """Tests for _load_config helper."""

    def test_overrides_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Command line values win over DATA_ROOT and SIM_* variables."""
        monkeypatch.setenv("DATA_ROOT", "/env/root")
        monkeypatch.setenv("SIM_KGRAM_STEP", "8")

        config = _load_config(Path("/cli/root"), chunk_size=1024)

        assert config.data_root == Path("/cli/root")
        assert config.chunk_size == 1024
        assert config.kgram_step == 8

    def test_environment_root(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Falls back to DATA_ROOT."""
        monkeypatch.setenv("DATA_ROOT", "/env/root")

        assert _load_config(None).data_root == Path("/env/root")

    def test_rejects_invalid_override(self) -> None:
        """Validates values passed on the command line."""
        with pytest.raises(ValueError, match="kgram_step"):
            _load_config(None, kgram_step=0)


class TestScanCommand:
    """Tests for the scan command."""

    def test_scan_reports_counts(self, root: Path) -> None:
        """Prints build statistics."""
        result = runner.invoke(app, ["scan", str(root)])

        assert result.exit_code == 0
        assert "A2L: 1, BIN: 1" in result.stdout

    def test_scan_empty_folder(self, tmp_path: Path) -> None:
        """Warns when nothing is indexed."""
        result = runner.invoke(app, ["scan", str(tmp_path)])

        assert result.exit_code == 0
        assert "No A2L or BIN files found" in result.stdout

    def test_scan_rejects_zero_chunk_size(self, root: Path) -> None:
        """Refuses a non-positive chunk size before scanning."""
        with patch("a2lfinder.cli.CorpusBuilder") as builder_cls:
            result = runner.invoke(app, ["scan", str(root), "--chunk-size", "0"])

        assert result.exit_code == 2
        builder_cls.assert_not_called()


class TestIdentifyCommand:
    """Tests for the identify command."""

    def test_identify_exact(self, root: Path, tmp_path: Path, image: bytes) -> None:
        """Shows the exact match in a table."""
        upload = tmp_path / "upload.bin"
        upload.write_bytes(image)

        result = runner.invoke(app, ["identify", str(upload), "--root", str(root)])

        assert result.exit_code == 0
        assert "100" in result.stdout
        assert content_hash(image) in result.stdout

    def test_identify_no_candidates(self, tmp_path: Path) -> None:
        """Prints diagnostics when nothing matches."""
        upload = tmp_path / "upload.bin"
        upload.write_bytes(b"\x01\x02\x03\x04")

        result = runner.invoke(app, ["identify", str(upload), "--root", str(tmp_path / "missing")])

        assert result.exit_code == 0
        assert "No candidates found" in result.stdout

    def test_identify_empty_upload(self, root: Path, tmp_path: Path) -> None:
        """Exits non-zero for an empty file."""
        upload = tmp_path / "empty.bin"
        upload.write_bytes(b"")

        result = runner.invoke(app, ["identify", str(upload), "--root", str(root)])

        assert result.exit_code == 1
        assert "No file provided" in result.stdout

    def test_identify_missing_file(self, tmp_path: Path) -> None:
        """Rejects a missing upload path."""
        result = runner.invoke(app, ["identify", str(tmp_path / "nope.bin")])

        assert result.exit_code != 0


class TestListingCommands:
    """Tests for descriptions, binaries and lookup."""

    def test_descriptions(self, root: Path) -> None:
        """Lists indexed A2L files."""
        result = runner.invoke(app, ["descriptions", "--root", str(root)])

        assert result.exit_code == 0
        assert "ref" in result.stdout

    def test_binaries(self, root: Path, image: bytes) -> None:
        """Lists indexed BIN files."""
        result = runner.invoke(app, ["binaries", "--root", str(root)])

        assert result.exit_code == 0
        assert "4096" in result.stdout

    def test_lookup(self, root: Path, image: bytes) -> None:
        """Prints associated A2L paths for a hash."""
        result = runner.invoke(app, ["lookup", content_hash(image), "--root", str(root)])

        assert result.exit_code == 0
        assert "ref.a2l" in result.stdout

    def test_lookup_unknown(self, root: Path) -> None:
        """Reports when a hash has no association."""
        result = runner.invoke(app, ["lookup", "0" * 40, "--root", str(root)])

        assert result.exit_code == 0
        assert "No A2L associated" in result.stdout
