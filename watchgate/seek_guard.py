"""Anti-skip clamping for seek requests."""

from __future__ import annotations

from typing import Any, Optional

from .session import known_duration, non_negative

DEFAULT_RESTORE_MARGIN = 1.0


def guard(requested: Any, max_watched: Any, duration: Any) -> float:
    """Return the position a seek to ``requested`` is allowed to land on.

    The request is clamped to ``[0, duration]`` (lower bound only while the
    duration is unknown). Anything past ``max_watched`` lands on
    ``max_watched``; backward seeks pass through untouched.
    """
    ceiling = non_negative(max_watched)
    limit = known_duration(duration)
    try:
        target = max(0.0, float(requested))
    except (TypeError, ValueError):
        target = 0.0
    if target != target:  # NaN
        target = 0.0
    if limit is not None:
        target = min(target, limit)
        ceiling = min(ceiling, limit)
    if target > ceiling:
        return ceiling
    return target


def restore_target(
    last_position: Any, duration: Any, margin: float = DEFAULT_RESTORE_MARGIN
) -> Optional[float]:
    """Resume position for a saved ``last_position``, or None when there is nothing to restore.

    Restores are not bounded by the max-watched time: the saved position was
    already bounded when it was written. They stay ``margin`` seconds short of
    the end so the backend does not report an immediate ``ended``.
    """
    limit = known_duration(duration)
    position = non_negative(last_position)
    if limit is None or position <= 0:
        return None
    target = min(position, limit - max(0.0, margin))
    if target <= 0:
        return None
    return target
