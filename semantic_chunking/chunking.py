"""
Split text into semantically meaningful chunks of at most ``chunk_size`` tokens.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Set, Tuple, Union

from .memoize import CounterRegistry, memoize_token_counter
from .merging import cumulative_lengths, merge_splits
from .overlap import Offset, Overlap, normalize_overlap, overlap_chunks
from .splitting import split_text

LOGGER = logging.getLogger(__name__)

# Each level of recursion works on a strictly shorter text, so real input stays
# far below this.
MAX_RECURSION_DEPTH = 256

ChunkResult = Union[List[str], Tuple[List[str], List[Offset]]]


def _build_chunks(
    text: str,
    chunk_size: int,
    token_counter: Callable[[str], int],
    depth: int,
    start: int,
) -> Tuple[List[str], List[Offset]]:
    """Chunk ``text`` whose first character sits at ``start`` in the original text."""

    if depth > MAX_RECURSION_DEPTH:
        raise RecursionError(
            f"Chunking recursed more than {MAX_RECURSION_DEPTH} levels deep."
        )

    splitter, splitter_is_whitespace, splits = split_text(text)

    splitter_len = len(splitter)
    cum_lens = cumulative_lengths(splits)

    split_starts = [start]
    for split in splits:
        split_starts.append(split_starts[-1] + len(split) + splitter_len)

    num_splits = len(splits)
    chunks: List[str] = []
    offsets: List[Offset] = []
    skips: Set[int] = set()

    for i, split in enumerate(splits):
        if i in skips:
            continue

        split_start = split_starts[i]
        next_i = i + 1

        if token_counter(split) > chunk_size:
            if len(split) > 1:
                LOGGER.debug("Recursing into split of %d chars at depth %d", len(split), depth + 1)
                new_chunks, new_offsets = _build_chunks(
                    split, chunk_size, token_counter, depth + 1, split_start
                )
                chunks.extend(new_chunks)
                offsets.extend(new_offsets)
            else:
                LOGGER.warning(
                    "Character %r at offset %d exceeds the chunk size on its own.",
                    split,
                    split_start,
                )
                chunks.append(split)
                offsets.append((split_start, split_start + len(split)))
        else:
            final_split_in_chunk_i, new_chunk = merge_splits(
                splits=splits,
                cum_lens=cum_lens,
                chunk_size=chunk_size,
                splitter=splitter,
                token_counter=token_counter,
                start=i,
                high=num_splits + 1,
            )
            skips.update(range(i + 1, final_split_in_chunk_i))
            next_i = max(next_i, final_split_in_chunk_i)

            chunks.append(new_chunk)
            offsets.append((split_start, split_starts[final_split_in_chunk_i] - splitter_len))

        # Punctuation splitters stay with the text before them, unless nothing
        # follows.
        if splitter_is_whitespace or next_i >= num_splits:
            continue

        chunk_with_splitter = chunks[-1] + splitter
        if token_counter(chunk_with_splitter) <= chunk_size:
            chunks[-1] = chunk_with_splitter
            chunk_start, chunk_end = offsets[-1]
            offsets[-1] = (chunk_start, chunk_end + splitter_len)
        else:
            splitter_start = offsets[-1][1] if offsets else split_start
            chunks.append(splitter)
            offsets.append((splitter_start, splitter_start + splitter_len))

    return chunks, offsets


def chunk(
    text: str,
    chunk_size: int,
    token_counter: Callable[[str], int],
    memoize: bool = True,
    offsets: bool = False,
    overlap: Optional[Overlap] = None,
    cache_maxsize: Optional[int] = None,
    registry: Optional[CounterRegistry] = None,
) -> ChunkResult:
    """
    Split ``text`` into semantically meaningful chunks of at most ``chunk_size``
    tokens as measured by ``token_counter``.

    Args:
        text: The text to chunk.
        chunk_size: Maximum number of tokens a chunk may contain.
        token_counter: Callable returning the number of tokens in a string.
        memoize: Cache token counts, sharing the cache between calls that use
            the same counter and ``cache_maxsize``.
        offsets: Also return ``(start, end)`` character offsets of each chunk.
        overlap: Proportion of ``chunk_size`` (below 1) or number of tokens
            (1 or more) by which consecutive chunks should overlap.
        cache_maxsize: Maximum number of cached token counts; unbounded if None.
        registry: Where memoized counters are kept; defaults to a process-wide
            registry.

    Returns:
        The chunks, or ``(chunks, offsets)`` when ``offsets`` is true. Each
        offset pair indexes the exact chunk text in ``text``.
    """

    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive.")

    if memoize:
        token_counter = memoize_token_counter(token_counter, cache_maxsize, registry)

    overlap_tokens, local_chunk_size = normalize_overlap(chunk_size, overlap)

    chunks, chunk_offsets = _build_chunks(text, local_chunk_size, token_counter, 0, 0)

    kept = [
        (chunk_text, offset)
        for chunk_text, offset in zip(chunks, chunk_offsets)
        if chunk_text and not chunk_text.isspace()
    ]
    chunks = [chunk_text for chunk_text, _ in kept]
    chunk_offsets = [offset for _, offset in kept]

    if overlap_tokens and chunks:
        chunks, chunk_offsets = overlap_chunks(
            text, chunk_offsets, chunk_size, overlap_tokens, local_chunk_size
        )

    if offsets:
        return chunks, chunk_offsets
    return chunks
