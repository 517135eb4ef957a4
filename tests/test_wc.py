import io
import sys

from xvkit.wc import CHUNK_SIZE, WordCount, count, main


def test_count_simple_line():
    data = b"hello world\n"
    assert count(io.BytesIO(data)) == WordCount(lines=1, words=2, chars=len(data))


def test_count_empty():
    assert count(io.BytesIO(b"")) == WordCount()


def test_nul_is_not_whitespace():
    assert count(io.BytesIO(b"a\0b")).words == 1


def test_all_whitespace_kinds_separate_words():
    data = b"a b\tc\rd\ne\vf"
    result = count(io.BytesIO(data))
    assert result.words == 6
    assert result.lines == data.count(b"\n")


def test_words_across_chunk_boundary():
    data = b"ab " * 400
    assert len(data) > CHUNK_SIZE
    result = count(io.BytesIO(data))
    assert result.words == 400
    assert result.chars == len(data)


def test_word_split_at_chunk_edge_counted_once():
    data = b"x" * (CHUNK_SIZE + 10)
    assert count(io.BytesIO(data)).words == 1


def test_counts_add_over_separated_parts():
    first = b"one two three\nfour"
    second = b"five six\n"
    a = count(io.BytesIO(first))
    b = count(io.BytesIO(second))
    whole = count(io.BytesIO(first + b"\n" + second))
    assert whole.words == a.words + b.words
    assert whole.lines == a.lines + b.lines + 1
    assert whole.chars == a.chars + b.chars + 1


def test_main_reports_each_file(tmp_path, capsys):
    first = tmp_path / "first.txt"
    second = tmp_path / "second.txt"
    first.write_bytes(b"alpha beta\ngamma\n")
    second.write_bytes(b"delta")
    assert main([str(first), str(second)]) == 0
    out = capsys.readouterr().out.splitlines()
    with first.open("rb") as f:
        expected_first = count(f)
    with second.open("rb") as f:
        expected_second = count(f)
    assert out == [expected_first.format(str(first)), expected_second.format(str(second))]


def test_main_missing_file(tmp_path, capsys):
    missing = tmp_path / "missing"
    assert main([str(missing)]) == 1
    assert capsys.readouterr().out == f"wc: cannot open {missing}\n"


def test_main_reads_stdin(monkeypatch, capsys):
    data = b"a b\n"
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))
    assert main([]) == 0
    out = capsys.readouterr().out
    assert out == count(io.BytesIO(data)).format("") + "\n"
    assert out.endswith(" \n")