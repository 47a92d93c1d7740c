"""Corpus indexing pipeline: directory scan followed by association."""

from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

from a2lfinder.config import AppConfig
from a2lfinder.fingerprint.hashing import Fingerprinter
from a2lfinder.index.corpus import Corpus
from a2lfinder.ingestion.a2l_loader import load_sidecar_signals, parse_description
from a2lfinder.models import BinaryEntry, DescriptionEntry
from a2lfinder.utils.files import GuardedReader, is_binary_file, is_description_file
from a2lfinder.utils.text import extract_printable_runs, tokenize

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class IndexStats:
    directories: int = 0
    descriptions: int = 0
    binaries: int = 0
    associated: int = 0
    failed: int = 0
    elapsed_ms: int = 0
    failed_paths: list[Path] = field(default_factory=list)

    def record_failure(self, path: Path) -> None:
        self.failed += 1
        self.failed_paths.append(path)


@dataclass(slots=True)
class DirectoryScan:
    """Entries found directly inside one directory."""

    directory: Path
    descriptions: list[DescriptionEntry] = field(default_factory=list)
    binaries: list[BinaryEntry] = field(default_factory=list)
    subdirectories: list[Path] = field(default_factory=list)
    failed_paths: list[Path] = field(default_factory=list)


def find_nearest_descriptions(
    start: Path, directory_map: Mapping[Path, Sequence[Path]]
) -> List[Path]:
    """Walk from ``start`` towards the filesystem root until a directory holds descriptions."""
    directory = start
    while True:
        found = directory_map.get(directory)
        if found:
            return list(found)
        parent = directory.parent
        if parent == directory:
            return []
        directory = parent


def associate(
    binaries: Sequence[BinaryEntry], directory_map: Mapping[Path, Sequence[Path]]
) -> int:
    """Attach the nearest enclosing descriptions to every binary.

    Returns the number of binaries that received at least one description.
    """
    associated = 0
    for binary in binaries:
        binary.associated_descriptions = find_nearest_descriptions(binary.directory, directory_map)
        if binary.associated_descriptions:
            associated += 1
    return associated


class CorpusBuilder:
    """Scans a corpus root and produces a frozen :class:`Corpus`."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        fingerprinter: Fingerprinter | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.fingerprinter = fingerprinter or Fingerprinter(
            chunk_size=self.config.chunk_size,
            k=self.config.kgram_k,
            step=self.config.kgram_step,
        )
        self.stats = IndexStats()

    def build(self, root: Path | str | None = None) -> Corpus:
        """Index ``root`` (defaults to the configured data root)."""
        self.stats = IndexStats()
        if root is None:
            root = self.config.resolve_data_root(Path.cwd())
        if root is None:
            LOGGER.warning("DATA_ROOT is not set. Point it at your reference data folder.")
            return Corpus.empty(None, fingerprinter=self.fingerprinter)

        root = Path(root).expanduser().absolute()
        if not root.is_dir():
            LOGGER.warning("DATA_ROOT does not exist: %s", root)
            return Corpus.empty(root, fingerprinter=self.fingerprinter)

        LOGGER.info("Indexing from DATA_ROOT: %s", root)
        started = time.perf_counter()

        descriptions, binaries = self.scan(root)
        directory_map: Dict[Path, List[Path]] = {}
        for entry in descriptions:
            directory_map.setdefault(entry.directory, []).append(entry.path)
        self.stats.associated = associate(binaries, directory_map)

        self.stats.descriptions = len(descriptions)
        self.stats.binaries = len(binaries)
        self.stats.elapsed_ms = int((time.perf_counter() - started) * 1000)
        LOGGER.info(
            "Indexed %d A2L(s), %d BIN(s) in %d ms",
            self.stats.descriptions,
            self.stats.binaries,
            self.stats.elapsed_ms,
        )
        if descriptions:
            LOGGER.info("Sample A2L: %s", descriptions[0].path)
        if binaries:
            LOGGER.info("Sample BIN: %s", binaries[0].path)

        return Corpus(root, descriptions, binaries, fingerprinter=self.fingerprinter)

    def scan(self, root: Path) -> tuple[list[DescriptionEntry], list[BinaryEntry]]:
        """Scan every directory under ``root``, one pool task per directory."""
        descriptions: list[DescriptionEntry] = []
        binaries: list[BinaryEntry] = []

        with GuardedReader(
            self.config.read_timeout, max_workers=self.config.max_workers
        ) as reader, ThreadPoolExecutor(
            max_workers=self.config.max_workers, thread_name_prefix="a2lfinder-scan"
        ) as pool:
            pending: set[Future[DirectoryScan]] = {pool.submit(self.scan_directory, root, reader)}
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    result = future.result()
                    self.stats.directories += 1
                    descriptions.extend(result.descriptions)
                    binaries.extend(result.binaries)
                    for path in result.failed_paths:
                        self.stats.record_failure(path)
                    for subdirectory in result.subdirectories:
                        pending.add(pool.submit(self.scan_directory, subdirectory, reader))

        descriptions.sort(key=lambda entry: str(entry.path))
        binaries.sort(key=lambda entry: str(entry.path))
        return descriptions, binaries

    def scan_directory(self, directory: Path, reader: GuardedReader) -> DirectoryScan:
        """Index the files directly inside ``directory``."""
        result = DirectoryScan(directory)
        try:
            entries = sorted(directory.iterdir())
        except OSError as exc:
            LOGGER.warning("Cannot read dir %s: %s", directory, exc)
            result.failed_paths.append(directory)
            return result

        description_paths: list[Path] = []
        binary_paths: list[Path] = []
        for entry in entries:
            try:
                if entry.is_dir():
                    # Symlinked directories could loop back into the tree.
                    if not entry.is_symlink():
                        result.subdirectories.append(entry)
                elif entry.is_file():
                    if is_description_file(entry):
                        description_paths.append(entry)
                    elif is_binary_file(entry):
                        binary_paths.append(entry)
            except OSError as exc:
                LOGGER.warning("Cannot stat %s: %s", entry, exc)
                result.failed_paths.append(entry)

        if description_paths:
            sidecars = load_sidecar_signals(directory, reader)
            for path in description_paths:
                try:
                    text = reader.read_text(path)
                except OSError as exc:
                    # The entry stays so the directory remains an association target.
                    LOGGER.warning("Cannot read A2L %s: %s", path, exc)
                    result.failed_paths.append(path)
                    text = ""
                result.descriptions.append(parse_description(path, text, sidecars))

        for path in binary_paths:
            try:
                data = reader.read_bytes(path)
            except OSError as exc:
                LOGGER.warning("Cannot read BIN %s: %s", path, exc)
                result.failed_paths.append(path)
                continue
            result.binaries.append(self.fingerprint_binary(path, data))

        LOGGER.debug(
            "Scanned %s: %d A2L(s), %d BIN(s), %d subdir(s)",
            directory,
            len(result.descriptions),
            len(result.binaries),
            len(result.subdirectories),
        )
        return result

    def fingerprint_binary(self, path: Path, data: bytes) -> BinaryEntry:
        fingerprinter = self.fingerprinter
        return BinaryEntry(
            path=path,
            directory=path.parent,
            sha1=fingerprinter.content_hash(data),
            ascii_tokens=frozenset(tokenize(extract_printable_runs(data))),
            chunk_hashes=frozenset(fingerprinter.chunk_hashes(data)),
            kgram_hashes=frozenset(fingerprinter.kgram_hashes(data)),
            size=len(data),
        )


def build_corpus(root: Path | str | None, config: AppConfig | None = None) -> Corpus:
    """Convenience wrapper: build a corpus with a fresh :class:`CorpusBuilder`."""
    return CorpusBuilder(config).build(root)
