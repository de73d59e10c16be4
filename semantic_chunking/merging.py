"""
Greedy merging of consecutive splits into the longest chunk that fits a budget.
"""

from __future__ import annotations

import bisect
from typing import Callable, List, Sequence, Tuple

# Initial guess at characters per token, refined after every measurement.
INITIAL_CHARS_PER_TOKEN = 0.2


def cumulative_lengths(splits: Sequence[str]) -> List[int]:
    """Running character totals, starting at 0, one entry longer than ``splits``."""

    cum_lens = [0]
    for split in splits:
        cum_lens.append(cum_lens[-1] + len(split))
    return cum_lens


def merge_splits(
    splits: Sequence[str],
    cum_lens: Sequence[int],
    chunk_size: int,
    splitter: str,
    token_counter: Callable[[str], int],
    start: int,
    high: int,
) -> Tuple[int, str]:
    """
    Find the largest ``j`` for which ``splitter.join(splits[start:j])`` fits in
    ``chunk_size`` tokens.

    The token budget is turned into a character target using the
    characters-per-token ratio seen so far, and ``cum_lens`` is bisected for
    that target inside ``[low, high)``. Each measurement narrows the interval
    and refits the ratio. ``splits[start]`` must fit in the budget on its own.

    Returns ``(j, merged_text)``.
    """

    average = INITIAL_CHARS_PER_TOKEN
    low = start

    offset = cum_lens[start]
    target = offset + (chunk_size * average)

    while low < high:
        i = bisect.bisect_left(cum_lens, target, lo=low, hi=high)
        midpoint = min(i, high - 1)

        tokens = token_counter(splitter.join(splits[start:midpoint]))

        local_cum = cum_lens[midpoint] - offset
        if local_cum and tokens > 0:
            average = local_cum / tokens
            target = offset + (chunk_size * average)

        if tokens > chunk_size:
            high = midpoint
        else:
            low = midpoint + 1

    last_split_index = low - 1
    return last_split_index, splitter.join(splits[start:last_split_index])
