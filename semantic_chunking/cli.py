"""
Command-line interface for chunking a corpus into semantically meaningful pieces.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from .dataset_loader import DatasetConfig
from .pipeline import ChunkingPipeline, PipelineConfig
from .tokenization import ChunkerConfig

ENV_TOKENIZER = "SEMCHUNK_TOKENIZER"
ENV_CHUNK_SIZE = "SEMCHUNK_CHUNK_SIZE"
DEFAULT_TOKENIZER = "cl100k_base"


def _resolve_tokenizer(cli_value: Optional[str]) -> str:
    return cli_value or os.environ.get(ENV_TOKENIZER) or DEFAULT_TOKENIZER


def _resolve_chunk_size(cli_value: Optional[int]) -> Optional[int]:
    if cli_value is not None:
        return cli_value
    env_value = os.environ.get(ENV_CHUNK_SIZE)
    if not env_value:
        return None
    try:
        return int(env_value)
    except ValueError as exc:
        raise typer.BadParameter(f"{ENV_CHUNK_SIZE} must be an integer, got {env_value!r}.") from exc


def chunk_corpus(
    input_path: Path = typer.Argument(
        ..., help="A .txt, .jsonl or .parquet file, or a directory containing them."
    ),
    output_path: Path = typer.Option(
        Path("data/chunks.jsonl"),
        "--output",
        help="Path to the JSONL file where chunk records will be stored.",
    ),
    overwrite: bool = typer.Option(
        False, "--overwrite", help="Overwrite the output file if it already exists."
    ),
    tokenizer: Optional[str] = typer.Option(
        None,
        help="tiktoken model/encoding name or Hugging Face tokenizer. "
        f"Falls back to {ENV_TOKENIZER}, then {DEFAULT_TOKENIZER}.",
    ),
    chunk_size: Optional[int] = typer.Option(
        None,
        help=f"Maximum tokens per chunk. Falls back to {ENV_CHUNK_SIZE}, then the "
        "tokenizer's model_max_length, then 512.",
    ),
    overlap: Optional[float] = typer.Option(
        None,
        help="Overlap between chunks: a proportion of the chunk size below 1, "
        "or a number of tokens.",
    ),
    max_token_chars: Optional[int] = typer.Option(
        None, help="Longest token in characters; derived from the vocabulary if omitted."
    ),
    cache_maxsize: Optional[int] = typer.Option(
        None, help="Maximum number of cached token counts (unbounded if omitted)."
    ),
    no_memoize: bool = typer.Option(
        False, "--no-memoize", help="Do not cache token counts."
    ),
    text_column: str = typer.Option(
        "text", help="Field holding the text in .jsonl and .parquet inputs."
    ),
    max_samples: Optional[int] = typer.Option(
        None, help="Stop after consuming this many texts."
    ),
    min_chunk_tokens: int = typer.Option(
        0, help="Discard chunks whose token count is below this threshold."
    ),
    workers: int = typer.Option(1, help="Number of threads used to chunk texts."),
    progress: bool = typer.Option(False, "--progress", help="Show a progress bar."),
    log_level: str = typer.Option("INFO", help="Python logging level (e.g., INFO, DEBUG)."),
):
    """
    Split every text in INPUT_PATH into chunks and write them as JSONL records.
    """

    load_dotenv()
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    pipeline_config = PipelineConfig(
        dataset=DatasetConfig(
            input_path=input_path,
            text_column=text_column,
            max_samples=max_samples,
        ),
        chunker=ChunkerConfig(
            tokenizer=_resolve_tokenizer(tokenizer),
            chunk_size=_resolve_chunk_size(chunk_size),
            overlap=overlap,
            max_token_chars=max_token_chars,
            memoize=not no_memoize,
            cache_maxsize=cache_maxsize,
        ),
        min_chunk_tokens=min_chunk_tokens,
        workers=workers,
        progress=progress,
    )

    pipeline = ChunkingPipeline(
        pipeline_config=pipeline_config,
        output_path=output_path,
        overwrite=overwrite,
    )

    stats = pipeline.run()
    typer.echo(f"Chunking finished. Stats: {stats}")


def run():
    typer.run(chunk_corpus)


if __name__ == "__main__":
    run()
