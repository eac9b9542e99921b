"""Flatten transcript segments and split them into token-bounded chunks."""

from __future__ import annotations

import math
from typing import Iterable, List, Optional, Protocol

DEFAULT_TOKENS_PER_CHAR = 0.25
DEFAULT_MAX_TOKENS = 8000


class SegmentLike(Protocol):
    speaker: Optional[str]
    text: str


def approx_token_count(text: str, tokens_per_char: float = DEFAULT_TOKENS_PER_CHAR) -> int:
    return int(math.ceil(len(text) * tokens_per_char))


def segment_line(seg: SegmentLike) -> str:
    text = (seg.text or "").strip()
    speaker = (seg.speaker or "").strip()
    return f"{speaker}: {text}" if speaker else text


def segments_to_transcript(segments: Iterable[SegmentLike]) -> str:
    return "\n".join(segment_line(seg) for seg in segments if (seg.text or "").strip())


def limited_transcript(segments: Iterable[SegmentLike], max_chars: int) -> str:
    """Take whole lines until the next one would push past max_chars."""
    out: List[str] = []
    used = 0
    for seg in segments:
        line = segment_line(seg) + "\n"
        if used + len(line) > max_chars:
            break
        out.append(line)
        used += len(line)
    return "".join(out).strip()


def chunk_by_tokens(
    text: str,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    tokens_per_char: float = DEFAULT_TOKENS_PER_CHAR,
) -> List[str]:
    """Split text into chunks of whole lines, each within max_tokens.

    A single line that alone exceeds the budget becomes its own chunk.
    Chunks keep their line terminators. A run of blank lines that would fill a
    chunk by itself is dropped rather than emitted, so joining the chunks gives
    back the input's lines (plus a trailing newline) only when no such run
    exists. Transcripts built by segments_to_transcript never contain one, since
    segments with no text are skipped there.
    """
    chunks: List[str] = []
    current = ""
    for line in text.split("\n"):
        candidate = current + line + "\n"
        if current and approx_token_count(candidate, tokens_per_char) > max_tokens:
            if current.strip():
                chunks.append(current)
            current = ""
        current += line + "\n"
    if current.strip():
        chunks.append(current)
    return chunks
