"""Read-only corpus of indexed descriptions and binaries."""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import AbstractSet, Callable, Dict, List, Sequence, Tuple

from a2lfinder.config import DEFAULT_TOP_K
from a2lfinder.fingerprint.hashing import Fingerprinter
from a2lfinder.fingerprint.similarity import jaccard, overlap_coefficient
from a2lfinder.models import BinaryEntry, DescriptionEntry, SimilarBinary

PathLike = str | Path


class Corpus:
    """Snapshot produced by :class:`~a2lfinder.index.indexer.CorpusBuilder`.

    The directory and content-hash maps are derived from the entries at
    construction time; rebuilding means constructing a new corpus.
    """

    def __init__(
        self,
        root: Path | None,
        descriptions: Sequence[DescriptionEntry],
        binaries: Sequence[BinaryEntry],
        *,
        fingerprinter: Fingerprinter | None = None,
    ) -> None:
        self._root = root
        self._descriptions: Tuple[DescriptionEntry, ...] = tuple(descriptions)
        self._binaries: Tuple[BinaryEntry, ...] = tuple(binaries)
        self.fingerprinter = fingerprinter or Fingerprinter()

        self._by_path: Dict[Path, DescriptionEntry] = {
            entry.path: entry for entry in self._descriptions
        }

        by_directory: Dict[Path, List[Path]] = defaultdict(list)
        for entry in self._descriptions:
            by_directory[entry.directory].append(entry.path)
        self._by_directory = {key: tuple(value) for key, value in by_directory.items()}

        by_hash: Dict[str, List[Path]] = defaultdict(list)
        for binary in self._binaries:
            for path in binary.associated_descriptions:
                if path not in by_hash[binary.sha1]:
                    by_hash[binary.sha1].append(path)
        self._by_hash = {key: tuple(value) for key, value in by_hash.items() if value}

    @classmethod
    def empty(cls, root: Path | None = None, *, fingerprinter: Fingerprinter | None = None) -> "Corpus":
        return cls(root, (), (), fingerprinter=fingerprinter)

    @property
    def root(self) -> Path | None:
        return self._root

    def corpus_root(self) -> Path | None:
        return self._root

    def is_empty(self) -> bool:
        return not self._descriptions and not self._binaries

    def list_descriptions(self) -> Tuple[DescriptionEntry, ...]:
        return self._descriptions

    def list_binaries(self) -> Tuple[BinaryEntry, ...]:
        return self._binaries

    def get_description(self, path: PathLike) -> DescriptionEntry | None:
        return self._by_path.get(Path(path))

    def find_by_content_hash(self, sha1: str) -> List[Path]:
        return list(self._by_hash.get(sha1.lower(), ()))

    associated_descriptions = find_by_content_hash

    def descriptions_for_directory(self, directory: PathLike) -> List[Path]:
        return list(self._by_directory.get(Path(directory), ()))

    def directory_map(self) -> Dict[Path, Tuple[Path, ...]]:
        return dict(self._by_directory)

    # Similarity queries

    def find_similar_by_chunks(self, data: bytes, *, top_k: int = DEFAULT_TOP_K) -> List[SimilarBinary]:
        signature = self.fingerprinter.chunk_hashes(data)
        return self._rank(lambda binary: jaccard(signature, binary.chunk_hashes), top_k)

    def find_similar_by_kgrams(self, data: bytes, *, top_k: int = DEFAULT_TOP_K) -> List[SimilarBinary]:
        signature = self.fingerprinter.kgram_hashes(data)
        return self._rank(lambda binary: jaccard(signature, binary.kgram_hashes), top_k)

    def find_similar_by_tokens(
        self, tokens: AbstractSet[str], *, top_k: int = DEFAULT_TOP_K
    ) -> List[SimilarBinary]:
        """Rank binaries by shared ASCII tokens over the smaller token set."""

        def score(binary: BinaryEntry) -> float:
            matched, denominator = overlap_coefficient(tokens, binary.ascii_tokens)
            return matched / denominator

        return self._rank(score, top_k)

    def _rank(self, score: Callable[[BinaryEntry], float], top_k: int) -> List[SimilarBinary]:
        scored = []
        for binary in self._binaries:
            similarity = score(binary)
            if similarity > 0:
                scored.append(
                    SimilarBinary(
                        binary_path=binary.path,
                        directory=binary.directory,
                        sha1=binary.sha1,
                        similarity=similarity,
                    )
                )
        scored.sort(key=lambda item: (-item.similarity, str(item.binary_path)))
        return scored[: max(top_k, 0)]

    def __repr__(self) -> str:
        return (
            f"Corpus(root={self._root!s}, descriptions={len(self._descriptions)}, "
            f"binaries={len(self._binaries)})"
        )
