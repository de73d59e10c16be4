import pytest

from semantic_chunking.overlap import normalize_overlap, overlap_chunks


@pytest.mark.parametrize(
    "chunk_size, overlap, expected",
    [
        (10, None, (0, 10)),
        (10, 0, (0, 10)),
        (10, 0.5, (5, 5)),
        (10, 0.25, (2, 2)),
        (10, 0.05, (0, 10)),
        (10, 3, (3, 3)),
        (10, 8, (8, 2)),
        (10, 25, (9, 1)),
    ],
)
def test_normalize_overlap(chunk_size, overlap, expected):
    assert normalize_overlap(chunk_size, overlap) == expected


def test_negative_overlap_is_rejected():
    with pytest.raises(ValueError):
        normalize_overlap(10, -0.1)


def test_windows_are_sliced_from_the_original_text():
    text = "aa bb, cc dd"
    offsets = [(0, 2), (3, 5), (7, 9), (10, 12)]

    chunks, windows = overlap_chunks(text, offsets, chunk_size=4, overlap=2, local_chunk_size=2)

    assert windows == [(0, 5), (3, 9), (7, 12)]
    assert chunks == ["aa bb", "bb, cc", "cc dd"]


def test_short_input_gives_one_window():
    chunks, windows = overlap_chunks("hello", [(0, 5)], chunk_size=4, overlap=2, local_chunk_size=2)

    assert chunks == ["hello"]
    assert windows == [(0, 5)]


def test_no_subchunks():
    assert overlap_chunks("", [], chunk_size=4, overlap=2, local_chunk_size=2) == ([], [])
