"""
Helpers for writing chunk records as JSONL.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import IO, Optional


@dataclass(frozen=True)
class ChunkRecord:
    sample_index: int
    source: str
    chunk_index: int
    text: str
    start: int
    end: int
    token_count: int


class JsonlWriter:
    """Append ``ChunkRecord`` objects to a JSONL file, one per line."""

    def __init__(self, path: Path, overwrite: bool = False) -> None:
        self.path = Path(path)
        if self.path.exists() and not overwrite:
            raise FileExistsError(
                f"{self.path} already exists. Pass overwrite=True to replace it."
            )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fp: Optional[IO[str]] = self.path.open("w", encoding="utf-8")
        self.records_written = 0

    def write(self, record: ChunkRecord) -> None:
        if self._fp is None:
            raise ValueError(f"{self.path} is already closed.")
        json.dump(asdict(record), self._fp, ensure_ascii=False)
        self._fp.write("\n")
        self.records_written += 1

    def close(self) -> None:
        if self._fp is not None:
            self._fp.close()
            self._fp = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()
