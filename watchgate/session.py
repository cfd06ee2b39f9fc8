"""In-memory playback session and its durable projection."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional


def finite_or_none(value: Any) -> Optional[float]:
    """Return ``value`` as a float, or None when it is missing or not finite."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def known_duration(value: Any) -> Optional[float]:
    """Normalise a backend duration: only finite, positive values count as known."""
    number = finite_or_none(value)
    if number is None or number <= 0:
        return None
    return number


def non_negative(value: Any) -> float:
    """Coerce to a finite float >= 0, using 0 for anything unusable."""
    number = finite_or_none(value)
    if number is None or number < 0:
        return 0.0
    return number


@dataclass
class PersistedProgress:
    """Durable subset of a session, one record per content key."""

    max_watched_time: float = 0.0
    percent: float = 0.0
    last_position: float = 0.0


@dataclass
class PlaybackSession:
    """State of one video instance, identified by its content key."""

    content_key: str
    current_time: float = 0.0
    duration: Optional[float] = None
    max_watched_time: float = 0.0
    percent: float = 0.0
    is_playing: bool = False
    volume: float = 1.0
    muted: bool = False
    threshold_unlocked: bool = False

    @classmethod
    def from_persisted(cls, content_key: str, persisted: PersistedProgress) -> "PlaybackSession":
        return cls(
            content_key=content_key,
            max_watched_time=persisted.max_watched_time,
            percent=persisted.percent,
        )

    def to_persisted(self) -> PersistedProgress:
        return PersistedProgress(
            max_watched_time=self.max_watched_time,
            percent=self.percent,
            last_position=self.current_time,
        )
