"""
Split text into semantically meaningful chunks bounded by a token budget.
"""

from .chunking import chunk
from .memoize import CounterRegistry, MemoizedCounter, memoize_token_counter
from .splitting import NON_WHITESPACE_SEMANTIC_SPLITTERS, split_text
from .tokenization import Chunker, ChunkerConfig, make_chunker

__all__ = [
    "NON_WHITESPACE_SEMANTIC_SPLITTERS",
    "Chunker",
    "ChunkerConfig",
    "CounterRegistry",
    "MemoizedCounter",
    "chunk",
    "make_chunker",
    "memoize_token_counter",
    "split_text",
]
