"""Typing-speed test statistics and built-in passages."""

import math
import re
from dataclasses import dataclass
from typing import Optional

PASSAGES = (
    "Design is a conversation between material and intention.",
    "Rammed earth breathes with the climate and anchors the home.",
    "Whenua and wai shape how we inhabit place and remember.",
)


@dataclass(frozen=True)
class TypingStats:
    wpm: int
    accuracy: int
    complete: bool


def next_passage(current: str) -> str:
    """Passage after `current`, wrapping around; the first one if unknown."""
    try:
        index = PASSAGES.index(current)
    except ValueError:
        return PASSAGES[0]
    return PASSAGES[(index + 1) % len(PASSAGES)]


def compute_typing_stats(
    target: str,
    typed: str,
    started_at: Optional[float],
    finished_at: Optional[float] = None,
    now: Optional[float] = None,
) -> TypingStats:
    """
    Score a typing attempt.

    Timestamps are in seconds. While the attempt is running, `finished_at`
    is None and `now` is used as the end time.

    Accuracy is the share of typed characters matching the target at the
    same position (100 when nothing is typed). Words per minute counts
    whitespace-separated words over elapsed minutes (0 before the start).
    """
    correct = sum(1 for i, ch in enumerate(typed) if i < len(target) and ch == target[i])
    accuracy = 100 if not typed else max(0, _round_half_up(correct / len(typed) * 100))

    end = finished_at if finished_at is not None else (now if started_at is not None else None)
    minutes = (end - started_at) / 60 if started_at is not None and end is not None else 0
    words = len([w for w in re.split(r"\s+", typed.strip()) if w])
    wpm = _round_half_up(words / minutes) if minutes > 0 else 0

    return TypingStats(wpm=wpm, accuracy=accuracy, complete=typed == target)


def _round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3)."""
    return math.floor(value + 0.5)
