"""Watch-threshold evaluation."""

from __future__ import annotations

from typing import Any, Optional

from .session import known_duration, non_negative

DEFAULT_UNLOCK_THRESHOLD = 50.0


def progress_percent(max_watched: Any, duration: Any) -> Optional[float]:
    """Share of ``duration`` covered by ``max_watched`` in 0..100, None while unknown."""
    limit = known_duration(duration)
    if limit is None:
        return None
    return min(100.0, max(0.0, non_negative(max_watched) / limit * 100))


def evaluate(max_watched: Any, duration: Any, threshold_percent: float) -> bool:
    """True once ``max_watched`` covers at least ``threshold_percent`` of ``duration``."""
    limit = known_duration(duration)
    if limit is None:
        return False
    return non_negative(max_watched) / limit * 100 >= threshold_percent
