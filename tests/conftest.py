import pytest
import tiktoken

from semantic_chunking.memoize import CounterRegistry


def count_words(text: str) -> int:
    return len(text.split())


def count_chars(text: str) -> int:
    return len(text)


class WordTokenizer:
    """Stands in for a Hugging Face tokenizer: one token per word plus a BOS token."""

    model_max_length = 8

    def encode(self, text, add_special_tokens=True):
        ids = [len(word) for word in text.split()]
        if add_special_tokens:
            ids.insert(0, 0)
        return ids

    def get_vocab(self):
        return {"<s>": 0, "hello": 1, "extraordinary": 2}


@pytest.fixture
def word_count():
    return count_words


@pytest.fixture
def char_count():
    return count_chars


@pytest.fixture
def registry():
    return CounterRegistry()


@pytest.fixture
def word_tokenizer():
    return WordTokenizer()


@pytest.fixture
def byte_encoding():
    # One token per byte; built in memory so no encoding files are downloaded.
    return tiktoken.Encoding(
        name="bytes",
        pat_str=r"\S+|\s+",
        mergeable_ranks={bytes([i]): i for i in range(256)},
        special_tokens={},
    )
