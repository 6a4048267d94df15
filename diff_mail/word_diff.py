"""Intra-line change highlighting for paired removed/added lines."""

from __future__ import annotations

import difflib
import re
from dataclasses import dataclass

TOKEN_RE = re.compile(r"\w+|\s+|[^\w\s]")

# Below this token similarity a pair is treated as a full rewrite and left
# unhighlighted.
SIMILARITY_THRESHOLD = 0.3


@dataclass(frozen=True, slots=True)
class Segment:
    """A run of text, marked when it differs from the other side."""

    text: str
    changed: bool = False


def tokenize(text: str) -> list[str]:
    """Split text into word, whitespace and punctuation tokens."""
    return TOKEN_RE.findall(text)


def highlight_pair(old: str, new: str) -> tuple[tuple[Segment, ...], tuple[Segment, ...]]:
    """Return (old_segments, new_segments) for a modified line pair.

    Joining the texts of either side always gives back the input string.
    """
    if not old or not new or old == new:
        return (_whole(old), _whole(new))

    old_tokens = tokenize(old)
    new_tokens = tokenize(new)
    matcher = difflib.SequenceMatcher(None, old_tokens, new_tokens, autojunk=False)
    if matcher.ratio() < SIMILARITY_THRESHOLD:
        return (_whole(old), _whole(new))

    old_segments: list[Segment] = []
    new_segments: list[Segment] = []
    for tag, old_begin, old_end, new_begin, new_end in matcher.get_opcodes():
        changed = tag != "equal"
        _append(old_segments, "".join(old_tokens[old_begin:old_end]), changed)
        _append(new_segments, "".join(new_tokens[new_begin:new_end]), changed)

    return (tuple(old_segments), tuple(new_segments))


def _whole(text: str) -> tuple[Segment, ...]:
    return (Segment(text),) if text else ()


def _append(segments: list[Segment], text: str, changed: bool) -> None:
    if not text:
        return
    if segments and segments[-1].changed == changed:
        segments[-1] = Segment(segments[-1].text + text, changed)
        return
    segments.append(Segment(text, changed))
