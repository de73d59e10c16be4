"""
Rebuild non-overlapping chunks into overlapping windows.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple, Union

Offset = Tuple[int, int]
Overlap = Union[int, float]


def normalize_overlap(chunk_size: int, overlap: Optional[Overlap]) -> Tuple[int, int]:
    """
    Turn ``overlap`` into an absolute token count.

    Values below 1 are a proportion of ``chunk_size``; anything else is a token
    count clamped to ``chunk_size - 1``. Returns ``(overlap, local_chunk_size)``
    where ``local_chunk_size`` is the size of the sub-chunks that the
    overlapping windows are later stitched from.
    """

    if not overlap:
        return 0, chunk_size
    if overlap < 0:
        raise ValueError("overlap must be non-negative.")

    if overlap < 1:
        absolute = math.floor(chunk_size * overlap)
    else:
        absolute = min(int(overlap), chunk_size - 1)

    if absolute <= 0:
        return 0, chunk_size
    return absolute, min(absolute, chunk_size - absolute)


def overlap_chunks(
    text: str,
    offsets: Sequence[Offset],
    chunk_size: int,
    overlap: int,
    local_chunk_size: int,
) -> Tuple[List[str], List[Offset]]:
    """
    Group sub-chunk ``offsets`` into windows of ``chunk_size`` tokens that
    advance by ``chunk_size - overlap`` tokens.

    Window text is sliced out of ``text`` so it always matches its offsets.
    """

    num_subchunks = len(offsets)
    if not num_subchunks:
        return [], []

    subchunks_per_chunk = chunk_size // local_chunk_size
    subchunk_stride = (chunk_size - overlap) // local_chunk_size
    num_chunks = max(1, math.ceil((num_subchunks - subchunks_per_chunk) / subchunk_stride) + 1)

    windows: List[Offset] = []
    for i in range(num_chunks):
        first = i * subchunk_stride
        last = min(first + subchunks_per_chunk, num_subchunks) - 1
        windows.append((offsets[first][0], offsets[last][1]))

    return [text[start:end] for start, end in windows], windows
