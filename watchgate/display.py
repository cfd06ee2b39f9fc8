"""Text helpers for the control bar and progress area."""

from __future__ import annotations

import math
from typing import Any

from .session import finite_or_none

UNLOCKED_MESSAGE = "You're ready! Take the next step now."
LOCKED_MESSAGE = "Watch at least {threshold:g}% to unlock the next step."


def format_time(seconds: Any) -> str:
    """Format a playback position as M:SS; unknown or negative values read 0:00."""
    value = finite_or_none(seconds)
    if value is None or value < 0:
        return "0:00"
    minutes = math.floor(value / 60)
    remainder = math.floor(value % 60)
    return f"{minutes}:{remainder:02d}"


def progress_message(unlocked: bool, threshold: float) -> str:
    if unlocked:
        return UNLOCKED_MESSAGE
    return LOCKED_MESSAGE.format(threshold=threshold)
