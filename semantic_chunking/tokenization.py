"""
Tokenizer helpers and the reusable ``Chunker`` built on top of ``chunk``.
"""

from __future__ import annotations

import inspect
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Union

import tiktoken
from tqdm import tqdm
from transformers import AutoTokenizer

from .chunking import ChunkResult, chunk
from .memoize import CounterRegistry, MemoizedCounter, memoize_token_counter
from .overlap import Overlap

LOGGER = logging.getLogger(__name__)

TokenCounter = Callable[[str], int]

# Used when neither the caller nor the tokenizer says how long a chunk may be.
DEFAULT_CHUNK_SIZE = 512


def build_tokenizer(name: str):
    """
    Resolve a tokenizer by name.

    tiktoken model names are tried first, then tiktoken encoding names, then
    Hugging Face checkpoints.
    """

    try:
        return tiktoken.encoding_for_model(name)
    except KeyError:
        pass

    try:
        return tiktoken.get_encoding(name)
    except ValueError:
        pass

    try:
        return AutoTokenizer.from_pretrained(name)
    except (OSError, ValueError) as exc:
        raise ValueError(
            f"{name!r} is not a tiktoken model, tiktoken encoding or Hugging Face tokenizer."
        ) from exc


def token_counter_from_tokenizer(tokenizer) -> TokenCounter:
    """Build a token counter around a tokenizer's ``encode`` method."""

    if isinstance(tokenizer, tiktoken.Encoding):

        def count_tokens(text: str) -> int:
            return len(tokenizer.encode(text, disallowed_special=()))

        return count_tokens

    try:
        parameters = inspect.signature(tokenizer.encode).parameters
    except (TypeError, ValueError):
        parameters = {}

    if "add_special_tokens" in parameters:

        def count_tokens(text: str) -> int:
            return len(tokenizer.encode(text, add_special_tokens=False))

    else:

        def count_tokens(text: str) -> int:
            return len(tokenizer.encode(text))

    return count_tokens


def longest_token_chars(tokenizer) -> Optional[int]:
    """Length of the longest vocabulary entry, if the tokenizer exposes one."""

    if hasattr(tokenizer, "token_byte_values"):
        vocab = tokenizer.token_byte_values()
    elif hasattr(tokenizer, "get_vocab"):
        vocab = tokenizer.get_vocab()
    else:
        return None
    return max((len(token) for token in vocab), default=None)


def has_model_max_length(tokenizer) -> bool:
    model_max_length = getattr(tokenizer, "model_max_length", None)
    return isinstance(model_max_length, int) and not isinstance(model_max_length, bool)


def default_chunk_size(tokenizer) -> int:
    """The tokenizer's maximum input length minus the special tokens it adds."""

    if not has_model_max_length(tokenizer):
        raise ValueError(
            "chunk_size was not provided and the tokenizer has no integer model_max_length."
        )

    chunk_size = tokenizer.model_max_length
    if hasattr(tokenizer, "encode"):
        try:
            chunk_size -= len(tokenizer.encode(""))
        except (TypeError, ValueError):
            LOGGER.debug("Could not count special tokens for %r", tokenizer)
    return chunk_size


def fast_token_counter(token_counter: TokenCounter, chunk_size: int, max_token_chars: int) -> TokenCounter:
    """
    Short-circuit counting of texts that are obviously over the budget.

    A long text whose prefix already exceeds ``chunk_size`` is reported as
    ``chunk_size + 1`` tokens without tokenizing the rest of it.
    """

    max_token_chars -= 1
    heuristic = chunk_size * 6

    def count_tokens(text: str) -> int:
        if len(text) > heuristic and token_counter(text[: heuristic + max_token_chars]) > chunk_size:
            return chunk_size + 1
        return token_counter(text)

    return count_tokens


class Chunker:
    """Chunk one or many texts with a fixed chunk size and token counter."""

    def __init__(self, chunk_size: int, token_counter: TokenCounter) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive.")
        self.chunk_size = chunk_size
        self.token_counter = token_counter

    def _chunk_one(self, text: str, offsets: bool, overlap: Optional[Overlap]) -> ChunkResult:
        return chunk(
            text,
            chunk_size=self.chunk_size,
            token_counter=self.token_counter,
            memoize=False,
            offsets=offsets,
            overlap=overlap,
        )

    def count_tokens(self, text: str) -> int:
        return self.token_counter(text)

    def process(
        self,
        text_or_texts: Union[str, Sequence[str]],
        workers: int = 1,
        progress: bool = False,
        offsets: bool = False,
        overlap: Optional[Overlap] = None,
    ) -> Any:
        """
        Chunk a text, or every text in a sequence.

        A single text gives the same result as ``chunk``. A sequence gives a
        list with one chunk list per text or, with ``offsets``, a pair of
        lists ``(chunks_per_text, offsets_per_text)``. ``workers`` above 1
        chunks the texts on a thread pool; results keep the input order.
        """

        if isinstance(text_or_texts, str):
            return self._chunk_one(text_or_texts, offsets, overlap)

        if workers < 1:
            raise ValueError("workers must be at least 1.")

        texts = list(text_or_texts)

        def run(text: str) -> ChunkResult:
            return self._chunk_one(text, offsets, overlap)

        if workers == 1:
            results: List[ChunkResult] = [
                run(text) for text in tqdm(texts, desc="Chunking", disable=not progress)
            ]
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(
                    tqdm(
                        executor.map(run, texts),
                        total=len(texts),
                        desc="Chunking",
                        disable=not progress,
                    )
                )

        if offsets:
            return [result[0] for result in results], [result[1] for result in results]
        return results

    __call__ = process


def make_chunker(
    tokenizer_or_token_counter: Union[str, TokenCounter, Any],
    chunk_size: Optional[int] = None,
    max_token_chars: Optional[int] = None,
    memoize: bool = True,
    cache_maxsize: Optional[int] = None,
    registry: Optional[CounterRegistry] = None,
) -> Chunker:
    """
    Build a ``Chunker`` from a tokenizer name, a tokenizer with an ``encode``
    method, or a plain token counter.

    ``chunk_size`` defaults to the tokenizer's ``model_max_length`` less its
    special tokens. ``max_token_chars`` defaults to the longest token in the
    tokenizer's vocabulary and enables a faster count for very long texts.

    Counters wrapped here get their own cache unless ``registry`` is given; a
    plain counter passed in is memoized through the shared registry.
    """

    tokenizer = tokenizer_or_token_counter
    if isinstance(tokenizer, str):
        LOGGER.info("Loading tokenizer %s", tokenizer)
        tokenizer = build_tokenizer(tokenizer)

    if max_token_chars is None:
        max_token_chars = longest_token_chars(tokenizer)

    if chunk_size is None:
        chunk_size = default_chunk_size(tokenizer)

    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive.")

    if hasattr(tokenizer, "encode"):
        token_counter = token_counter_from_tokenizer(tokenizer)
    elif callable(tokenizer):
        token_counter = tokenizer
    else:
        raise ValueError(
            "Expected a tokenizer name, a tokenizer with an encode method or a token counter."
        )

    if max_token_chars:
        token_counter = fast_token_counter(token_counter, chunk_size, max_token_chars)

    if memoize:
        if token_counter is tokenizer or registry is not None:
            token_counter = memoize_token_counter(token_counter, cache_maxsize, registry)
        else:
            # Wrappers built here are unique to this chunker, so their cache
            # lives with it rather than in the process-wide registry.
            token_counter = MemoizedCounter(token_counter, cache_maxsize)

    return Chunker(chunk_size=chunk_size, token_counter=token_counter)


@dataclass
class ChunkerConfig:
    tokenizer: str = "cl100k_base"
    chunk_size: Optional[int] = DEFAULT_CHUNK_SIZE
    overlap: Optional[Overlap] = None
    max_token_chars: Optional[int] = None
    memoize: bool = True
    cache_maxsize: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.tokenizer:
            raise ValueError("tokenizer must be provided.")
        if self.chunk_size is not None and self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive.")
        if self.overlap is not None and self.overlap < 0:
            raise ValueError("overlap must be non-negative.")
        if self.max_token_chars is not None and self.max_token_chars <= 0:
            raise ValueError("max_token_chars must be positive.")
        if self.cache_maxsize is not None and self.cache_maxsize <= 0:
            raise ValueError("cache_maxsize must be positive.")

    def build(self) -> Chunker:
        tokenizer = build_tokenizer(self.tokenizer)
        chunk_size = self.chunk_size
        if chunk_size is None and not has_model_max_length(tokenizer):
            LOGGER.info(
                "%s has no model_max_length, using chunk_size=%d", self.tokenizer, DEFAULT_CHUNK_SIZE
            )
            chunk_size = DEFAULT_CHUNK_SIZE
        return make_chunker(
            tokenizer,
            chunk_size=chunk_size,
            max_token_chars=self.max_token_chars,
            memoize=self.memoize,
            cache_maxsize=self.cache_maxsize,
        )
