"""Utility helpers for working with corpus files."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path

LOGGER = logging.getLogger(__name__)

DESCRIPTION_SUFFIX = ".a2l"
BINARY_SUFFIX = ".bin"
SIDECAR_NAMES = ("EPK.txt", "ident.txt", "minmax.csv")


def is_description_file(path: Path) -> bool:
    return path.suffix.lower() == DESCRIPTION_SUFFIX


def is_binary_file(path: Path) -> bool:
    return path.suffix.lower() == BINARY_SUFFIX


def description_label(path: Path) -> str:
    """File name without the description extension."""
    name = path.name
    if name.lower().endswith(DESCRIPTION_SUFFIX):
        return name[: -len(DESCRIPTION_SUFFIX)]
    return name


class ReadTimeoutError(OSError):
    """Raised when a single file read exceeds its time budget."""


class GuardedReader:
    """Reads files on a helper pool so one stalled read cannot hang a scan.

    A timed-out read keeps its worker thread until the OS call returns; the
    caller just stops waiting for it.
    """

    def __init__(self, timeout: float | None = None, *, max_workers: int | None = None) -> None:
        self.timeout = timeout
        self._executor = (
            ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="a2lfinder-read")
            if timeout is not None
            else None
        )

    def __enter__(self) -> "GuardedReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def read_bytes(self, path: Path) -> bytes:
        if self._executor is None:
            return path.read_bytes()
        future = self._executor.submit(path.read_bytes)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeout as exc:
            future.cancel()
            raise ReadTimeoutError(f"Timed out after {self.timeout}s reading {path}") from exc

    def read_text(self, path: Path) -> str:
        return self.read_bytes(path).decode("utf-8", errors="replace")
