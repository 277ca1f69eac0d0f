"""
File-Based Leaderboard
======================

Stores typing-test results as a JSON array.

Responsibilities:
- Keep entries sorted by words per minute, fastest first
- Cap the board at MAX_ENTRIES
- Atomic writes (temp file + rename)
- Treat a corrupt or unreadable file as an empty board
"""

import json
import os
import tempfile
import time
from pathlib import Path
from typing import Optional

import structlog
from pydantic import BaseModel, Field, ValidationError

from atelier.core.domain.typing_stats import TypingStats

logger = structlog.get_logger()

MAX_ENTRIES = 50


class LeaderboardEntry(BaseModel):
    """One submitted typing result. `ts` is milliseconds since the epoch."""

    name: str = Field(..., min_length=1)
    wpm: int = Field(..., ge=0)
    accuracy: int = Field(..., ge=0, le=100)
    ts: int


class FileLeaderboard:
    """
    JSON leaderboard persisted at `path`.

    Not thread-safe. Use appropriate locking if concurrent access needed.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()
        self.logger = logger.bind(component="file_leaderboard")

    def load(self) -> list[LeaderboardEntry]:
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            entries = [LeaderboardEntry.model_validate(item) for item in raw]
        except (OSError, ValueError, TypeError, ValidationError) as e:
            self.logger.warning(
                "leaderboard.load.corrupt",
                path=str(self.path),
                error=str(e)[:200],
                error_type=type(e).__name__,
            )
            return []

        return _ranked(entries)

    def submit(self, name: str, stats: TypingStats, ts: Optional[int] = None) -> list[LeaderboardEntry]:
        """
        Add a result and persist the board.

        Raises:
            ValueError: If `name` is blank
        """
        name = name.strip()
        if not name:
            raise ValueError("Name is required")

        entry = LeaderboardEntry(
            name=name,
            wpm=stats.wpm,
            accuracy=stats.accuracy,
            ts=ts if ts is not None else int(time.time() * 1000),
        )
        board = _ranked([*self.load(), entry])
        self._write(board)
        self.logger.info("leaderboard.entry.submitted", name=name, wpm=entry.wpm, size=len(board))
        return board

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
        self.logger.info("leaderboard.cleared", path=str(self.path))

    def _write(self, entries: list[LeaderboardEntry]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_fd, temp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp", prefix=".leaderboard_")
        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump([e.model_dump() for e in entries], f, ensure_ascii=False, indent=2)
            os.replace(temp_path, self.path)
        except Exception:
            if Path(temp_path).exists():
                Path(temp_path).unlink()
            raise


def _ranked(entries: list[LeaderboardEntry]) -> list[LeaderboardEntry]:
    return sorted(entries, key=lambda e: e.wpm, reverse=True)[:MAX_ENTRIES]
