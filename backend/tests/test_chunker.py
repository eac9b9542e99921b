from __future__ import annotations

from types import SimpleNamespace

from meeting_actions.services.chunker import (
    approx_token_count,
    chunk_by_tokens,
    limited_transcript,
    segment_line,
    segments_to_transcript,
)


def seg(text, speaker=None):
    return SimpleNamespace(text=text, speaker=speaker)


def test_approx_token_count_rounds_up():
    assert approx_token_count("", 0.25) == 0
    assert approx_token_count("abcd", 0.25) == 1
    assert approx_token_count("abcde", 0.25) == 2


def test_segment_line_prefixes_speaker():
    assert segment_line(seg("  hello ", "Speaker 0")) == "Speaker 0: hello"
    assert segment_line(seg("hello", "  ")) == "hello"


def test_segments_to_transcript_joins_lines():
    text = segments_to_transcript([seg("hi", "A"), seg("there")])
    assert text == "A: hi\nthere"


def test_chunks_split_on_whole_lines_within_budget():
    text = "a" * 9 + "\n" + "b" * 9 + "\n" + "c" * 9
    # budget of 5 tokens = 20 chars; two 10-char lines fit, the third does not
    chunks = chunk_by_tokens(text, max_tokens=5, tokens_per_char=0.25)
    assert chunks == ["a" * 9 + "\n" + "b" * 9 + "\n", "c" * 9 + "\n"]
    for chunk in chunks:
        assert approx_token_count(chunk, 0.25) <= 5


def test_oversized_line_becomes_its_own_chunk():
    long_line = "x" * 100
    chunks = chunk_by_tokens("a\n" + long_line + "\nb", max_tokens=5, tokens_per_char=0.25)
    assert chunks == ["a\n", long_line + "\n", "b\n"]


def test_whitespace_only_input_gives_no_chunks():
    assert chunk_by_tokens("", max_tokens=10) == []
    assert chunk_by_tokens("\n\n  \n", max_tokens=10) == []


def test_whitespace_only_chunk_is_dropped():
    chunks = chunk_by_tokens("   \n" + "y" * 40, max_tokens=5, tokens_per_char=0.25)
    assert chunks == ["y" * 40 + "\n"]


def test_joined_chunks_give_back_the_non_blank_lines():
    text = "A: one\nB: two\n" + "C: " + "z" * 30
    chunks = chunk_by_tokens(text, max_tokens=5, tokens_per_char=0.25)
    assert len(chunks) > 1
    assert "".join(chunks) == text + "\n"

    dropped = chunk_by_tokens("   \n" + "y" * 40, max_tokens=5, tokens_per_char=0.25)
    assert "".join(dropped).split("\n")[:-1] == ["y" * 40]


def test_segments_without_text_are_skipped():
    text = segments_to_transcript([seg("hi", "A"), seg("  ", "B"), seg(None), seg("bye", "C")])
    assert text == "A: hi\nC: bye"


def test_short_transcript_is_one_chunk():
    text = "A: hello\nB: hi there"
    assert chunk_by_tokens(text) == [text + "\n"]


def test_limited_transcript_stops_at_whole_line():
    segments = [seg("one", "A"), seg("two", "B"), seg("three", "C")]
    # "A: one\n" is 7 chars, "B: two\n" is 7 more
    assert limited_transcript(segments, 14) == "A: one\nB: two"
    assert limited_transcript(segments, 13) == "A: one"
    assert limited_transcript(segments, 3) == ""
