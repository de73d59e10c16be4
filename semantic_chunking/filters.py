"""
Heuristics used to accept or reject chunks before they are written.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .tokenization import Chunker


class ChunkFilter(Protocol):
    def accepts(self, text: str) -> bool:
        ...


@dataclass
class MinTokenFilter:
    chunker: Chunker
    min_tokens: int = 0

    def accepts(self, text: str) -> bool:
        return self.min_tokens <= 0 or self.chunker.count_tokens(text) >= self.min_tokens
