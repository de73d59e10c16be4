import json

import pyarrow as pa
import pyarrow.parquet as pq
import pytest
import typer
from typer.testing import CliRunner

from semantic_chunking import tokenization
from semantic_chunking.cli import chunk_corpus
from semantic_chunking.dataset_loader import DatasetConfig, DatasetStream
from semantic_chunking.pipeline import ChunkingPipeline, PipelineConfig
from semantic_chunking.storage import ChunkRecord, JsonlWriter
from semantic_chunking.tokenization import make_chunker


def write_corpus(root):
    (root / "a.txt").write_text("one two three four five", encoding="utf-8")
    (root / "b.jsonl").write_text(
        "\n".join(
            [
                json.dumps({"text": "alpha beta"}),
                json.dumps({"other": 1}),
                "",
                json.dumps({"text": "gamma"}),
            ]
        ),
        encoding="utf-8",
    )
    (root / "ignored.md").write_text("not read", encoding="utf-8")


def read_records(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_stream_reads_supported_files_in_order(tmp_path):
    write_corpus(tmp_path)

    texts = list(DatasetStream(DatasetConfig(input_path=tmp_path)).iter_texts())

    assert texts == [
        (0, str(tmp_path / "a.txt"), "one two three four five"),
        (1, str(tmp_path / "b.jsonl"), "alpha beta"),
        (2, str(tmp_path / "b.jsonl"), "gamma"),
    ]


def test_stream_honours_max_samples(tmp_path):
    write_corpus(tmp_path)

    texts = list(DatasetStream(DatasetConfig(input_path=tmp_path, max_samples=2)).iter_texts())

    assert [text for _, _, text in texts] == ["one two three four five", "alpha beta"]


def test_stream_reads_parquet(tmp_path):
    path = tmp_path / "shard.parquet"
    pq.write_table(pa.table({"body": ["x y", None, "z"], "id": [1, 2, 3]}), path)

    texts = list(DatasetStream(DatasetConfig(input_path=path, text_column="body")).iter_texts())

    assert [text for _, _, text in texts] == ["x y", "z"]


def test_stream_rejects_invalid_jsonl(tmp_path):
    (tmp_path / "bad.jsonl").write_text("{not json}\n", encoding="utf-8")

    with pytest.raises(ValueError, match="bad.jsonl:1"):
        list(DatasetStream(DatasetConfig(input_path=tmp_path)).iter_texts())


def test_stream_missing_input(tmp_path):
    with pytest.raises(FileNotFoundError):
        list(DatasetStream(DatasetConfig(input_path=tmp_path / "missing")).iter_texts())


def test_writer_refuses_to_overwrite(tmp_path):
    path = tmp_path / "out.jsonl"
    path.write_text("", encoding="utf-8")

    with pytest.raises(FileExistsError):
        JsonlWriter(path)

    with JsonlWriter(path, overwrite=True) as writer:
        writer.write(ChunkRecord(0, "src", 0, "text", 0, 4, 1))
    assert read_records(path)[0]["text"] == "text"


def test_pipeline_writes_chunk_records(tmp_path, word_count):
    corpus = tmp_path / "corpus"
    corpus.mkdir()
    write_corpus(corpus)
    output = tmp_path / "out" / "chunks.jsonl"

    pipeline = ChunkingPipeline(
        PipelineConfig(dataset=DatasetConfig(input_path=corpus)),
        output_path=output,
        chunker=make_chunker(word_count, chunk_size=3, memoize=False),
    )
    stats = pipeline.run()

    records = read_records(output)
    assert stats == {"samples_seen": 3, "chunks_written": 4, "chunks_filtered": 0}
    assert [r["text"] for r in records] == ["one two three", "four five", "alpha beta", "gamma"]
    assert [r["chunk_index"] for r in records] == [0, 1, 0, 0]
    assert [r["token_count"] for r in records] == [3, 2, 2, 1]
    assert (records[1]["start"], records[1]["end"]) == (14, 23)


def test_pipeline_filters_short_chunks(tmp_path, word_count):
    corpus = tmp_path / "corpus"
    corpus.mkdir()
    write_corpus(corpus)
    output = tmp_path / "chunks.jsonl"

    pipeline = ChunkingPipeline(
        PipelineConfig(
            dataset=DatasetConfig(input_path=corpus),
            min_chunk_tokens=2,
            workers=2,
        ),
        output_path=output,
        chunker=make_chunker(word_count, chunk_size=3),
    )
    stats = pipeline.run()

    assert stats["chunks_written"] == 3
    assert stats["chunks_filtered"] == 1
    assert "gamma" not in [r["text"] for r in read_records(output)]


def test_pipeline_config_validation():
    with pytest.raises(ValueError):
        PipelineConfig(workers=0)
    with pytest.raises(ValueError):
        PipelineConfig(min_chunk_tokens=-1)


def test_cli_chunks_a_corpus(tmp_path, monkeypatch, word_tokenizer):
    monkeypatch.setattr(tokenization, "build_tokenizer", lambda name: word_tokenizer)
    monkeypatch.delenv("SEMCHUNK_TOKENIZER", raising=False)
    monkeypatch.delenv("SEMCHUNK_CHUNK_SIZE", raising=False)
    write_corpus(tmp_path)
    output = tmp_path / "chunks.jsonl"

    app = typer.Typer()
    app.command()(chunk_corpus)
    result = CliRunner().invoke(
        app,
        [str(tmp_path / "a.txt"), "--output", str(output), "--tokenizer", "fake", "--chunk-size", "2"],
    )

    assert result.exit_code == 0, result.output
    assert "Chunking finished" in result.output
    assert [r["text"] for r in read_records(output)] == ["one two", "three four", "five"]


def test_cli_reads_chunk_size_from_environment(tmp_path, monkeypatch, word_tokenizer):
    monkeypatch.setattr(tokenization, "build_tokenizer", lambda name: word_tokenizer)
    monkeypatch.setenv("SEMCHUNK_CHUNK_SIZE", "4")
    write_corpus(tmp_path)
    output = tmp_path / "chunks.jsonl"

    app = typer.Typer()
    app.command()(chunk_corpus)
    result = CliRunner().invoke(app, [str(tmp_path / "a.txt"), "--output", str(output)])

    assert result.exit_code == 0, result.output
    assert [r["text"] for r in read_records(output)] == ["one two three four", "five"]


def test_cli_defaults_work_with_tiktoken_encodings(tmp_path, monkeypatch, byte_encoding):
    monkeypatch.setattr(tokenization, "build_tokenizer", lambda name: byte_encoding)
    monkeypatch.delenv("SEMCHUNK_TOKENIZER", raising=False)
    monkeypatch.delenv("SEMCHUNK_CHUNK_SIZE", raising=False)
    write_corpus(tmp_path)
    output = tmp_path / "chunks.jsonl"

    app = typer.Typer()
    app.command()(chunk_corpus)
    result = CliRunner().invoke(app, [str(tmp_path / "a.txt"), "--output", str(output)])

    assert result.exit_code == 0, result.output
    records = read_records(output)
    assert [r["text"] for r in records] == ["one two three four five"]
    assert records[0]["token_count"] == len("one two three four five")
