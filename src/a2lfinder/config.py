"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

DEFAULT_CHUNK_SIZE = 2048
DEFAULT_KGRAM_K = 64
DEFAULT_KGRAM_STEP = 16
DEFAULT_TOP_K = 5
DEFAULT_READ_TIMEOUT = 30.0


def _positive_int(value: str | None, default: int) -> int:
    """Parse a positive integer, falling back to ``default`` like ``parseInt(...) || default``."""
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


@dataclass(slots=True)
class AppConfig:
    data_root: Path | None = None
    chunk_size: int = DEFAULT_CHUNK_SIZE
    kgram_k: int = DEFAULT_KGRAM_K
    kgram_step: int = DEFAULT_KGRAM_STEP
    top_k: int = DEFAULT_TOP_K
    read_timeout: float | None = DEFAULT_READ_TIMEOUT
    max_workers: int | None = None

    def __post_init__(self) -> None:
        for name in ("chunk_size", "kgram_k", "kgram_step", "top_k"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.read_timeout is not None and self.read_timeout <= 0:
            raise ValueError(f"read_timeout must be positive, got {self.read_timeout}")
        if self.max_workers is not None and self.max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppConfig":
        """Build a configuration from ``DATA_ROOT`` and the ``SIM_*`` sensitivity knobs."""
        env = os.environ if environ is None else environ
        root = env.get("DATA_ROOT", "").strip()
        return cls(
            data_root=Path(root) if root else None,
            chunk_size=_positive_int(env.get("SIM_CHUNK_SIZE"), DEFAULT_CHUNK_SIZE),
            kgram_k=_positive_int(env.get("SIM_KGRAM_K"), DEFAULT_KGRAM_K),
            kgram_step=_positive_int(env.get("SIM_KGRAM_STEP"), DEFAULT_KGRAM_STEP),
        )

    def resolve_data_root(self, base_dir: Path | None = None) -> Path | None:
        if self.data_root is None:
            return None
        if Path(self.data_root).is_absolute() or base_dir is None:
            return Path(self.data_root)
        return base_dir / self.data_root
