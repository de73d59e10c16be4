"""
Read raw texts from local .txt, .jsonl and parquet files.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import pyarrow.parquet as pq

LOGGER = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".txt", ".jsonl", ".parquet")


@dataclass
class DatasetConfig:
    input_path: Path = Path("data")
    text_column: str = "text"
    max_samples: Optional[int] = None

    def __post_init__(self) -> None:
        if not str(self.input_path):
            raise ValueError("input_path must be provided.")
        if not self.text_column:
            raise ValueError("text_column must be provided.")
        if self.max_samples is not None and self.max_samples < 0:
            raise ValueError("max_samples must be non-negative.")
        self.input_path = Path(self.input_path)


class DatasetStream:
    """Iterate over raw texts found under ``config.input_path``."""

    def __init__(self, config: DatasetConfig) -> None:
        self.config = config
        self._files: Optional[List[Path]] = None

    def _resolve_files(self) -> List[Path]:
        if self._files is None:
            path = self.config.input_path
            if path.is_dir():
                self._files = sorted(
                    p for p in path.rglob("*") if p.is_file() and p.suffix in SUPPORTED_SUFFIXES
                )
            elif path.is_file():
                self._files = [path]
            else:
                self._files = []
            if not self._files:
                raise FileNotFoundError(f"No .txt, .jsonl or .parquet files found at {path}")
            LOGGER.info("Discovered %d input files under %s", len(self._files), path)
        return self._files

    @staticmethod
    def _batch_to_rows(batch) -> Iterator[dict]:
        columns = batch.schema.names
        if not columns:
            return
        column_data = [batch.column(name).to_pylist() for name in columns]
        row_count = len(column_data[0]) if column_data else 0
        for row_idx in range(row_count):
            yield {
                name: column_data[col_idx][row_idx]
                for col_idx, name in enumerate(columns)
            }

    def _iter_file(self, path: Path) -> Iterator[Optional[str]]:
        if path.suffix == ".txt":
            yield path.read_text(encoding="utf-8")
        elif path.suffix == ".jsonl":
            with path.open("r", encoding="utf-8") as fp:
                for line_no, line in enumerate(fp, start=1):
                    if not line.strip():
                        continue
                    try:
                        record = json.loads(line)
                    except json.JSONDecodeError as exc:
                        raise ValueError(f"{path}:{line_no} is not valid JSON") from exc
                    yield record.get(self.config.text_column) if isinstance(record, dict) else None
        else:
            parquet_file = pq.ParquetFile(path)
            for batch in parquet_file.iter_batches(columns=[self.config.text_column]):
                for row in self._batch_to_rows(batch):
                    yield row.get(self.config.text_column)

    def iter_texts(self) -> Iterator[Tuple[int, str, str]]:
        """Yield ``(index, source, text)`` for every non-empty text."""

        emitted = 0
        for path in self._resolve_files():
            for text in self._iter_file(path):
                if self.config.max_samples is not None and emitted >= self.config.max_samples:
                    return
                if not isinstance(text, str) or not text:
                    LOGGER.debug("No text found in record from %s, skipping", path)
                    continue
                yield emitted, str(path), text
                emitted += 1
