"""
High-level orchestration for chunking a corpus into JSONL records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from tqdm import tqdm

from .dataset_loader import DatasetConfig, DatasetStream
from .filters import ChunkFilter, MinTokenFilter
from .storage import ChunkRecord, JsonlWriter
from .tokenization import Chunker, ChunkerConfig

LOGGER = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    dataset: DatasetConfig = field(default_factory=DatasetConfig)
    chunker: ChunkerConfig = field(default_factory=ChunkerConfig)
    min_chunk_tokens: int = 0
    workers: int = 1
    progress: bool = False
    log_every: int = 100

    def __post_init__(self) -> None:
        if self.min_chunk_tokens < 0:
            raise ValueError("min_chunk_tokens must be non-negative.")
        if self.workers < 1:
            raise ValueError("workers must be at least 1.")
        if self.log_every <= 0:
            raise ValueError("log_every must be positive.")


class ChunkingPipeline:
    def __init__(
        self,
        pipeline_config: PipelineConfig,
        output_path: Union[str, Path],
        overwrite: bool = False,
        chunker: Optional[Chunker] = None,
    ) -> None:
        self.pipeline_config = pipeline_config
        self.chunker = chunker or pipeline_config.chunker.build()
        self.dataset_stream = DatasetStream(pipeline_config.dataset)
        self.output_path = Path(output_path)
        self.overwrite = overwrite
        self.filter: ChunkFilter = MinTokenFilter(
            chunker=self.chunker, min_tokens=pipeline_config.min_chunk_tokens
        )

    def _write_batch(self, writer: JsonlWriter, batch, stats: dict) -> None:
        texts = [text for _, _, text in batch]
        all_chunks, all_offsets = self.chunker.process(
            texts,
            workers=self.pipeline_config.workers,
            offsets=True,
            overlap=self.pipeline_config.chunker.overlap,
        )
        for (sample_idx, source, _), chunks, offsets in zip(batch, all_chunks, all_offsets):
            for chunk_idx, (text, (start, end)) in enumerate(zip(chunks, offsets)):
                if not self.filter.accepts(text):
                    stats["chunks_filtered"] += 1
                    continue
                writer.write(
                    ChunkRecord(
                        sample_index=sample_idx,
                        source=source,
                        chunk_index=chunk_idx,
                        text=text,
                        start=start,
                        end=end,
                        token_count=self.chunker.count_tokens(text),
                    )
                )
                stats["chunks_written"] += 1

    def run(self) -> dict:
        stats = {
            "samples_seen": 0,
            "chunks_written": 0,
            "chunks_filtered": 0,
        }
        batch_size = max(self.pipeline_config.workers * 4, 1)
        batch = []

        with JsonlWriter(self.output_path, overwrite=self.overwrite) as writer:
            samples = self.dataset_stream.iter_texts()
            if self.pipeline_config.progress:
                samples = tqdm(samples, desc="Chunking", unit="text")

            for sample in samples:
                stats["samples_seen"] += 1
                batch.append(sample)
                if len(batch) >= batch_size:
                    self._write_batch(writer, batch, stats)
                    batch = []

                if stats["samples_seen"] % self.pipeline_config.log_every == 0:
                    LOGGER.info(
                        "Processed %d samples | wrote %d chunks",
                        stats["samples_seen"],
                        stats["chunks_written"],
                    )

            if batch:
                self._write_batch(writer, batch, stats)

        LOGGER.info("Chunking complete: %s", stats)
        return stats
