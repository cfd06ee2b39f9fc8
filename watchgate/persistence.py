"""Encoding of watch progress into a durable string store."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from .session import PersistedProgress, PlaybackSession, finite_or_none
from .store import DurableStore

MAX_TIME_SUFFIX = "_maxTime"
PERCENT_SUFFIX = "_progress"
POSITION_SUFFIX = "_position"


def storage_keys(content_key: str) -> Dict[str, str]:
    """Store keys holding the progress of ``content_key``."""
    return {
        "max_watched_time": f"{content_key}{MAX_TIME_SUFFIX}",
        "percent": f"{content_key}{PERCENT_SUFFIX}",
        "last_position": f"{content_key}{POSITION_SUFFIX}",
    }


def _decode(raw: Optional[str], upper: Optional[float] = None) -> float:
    number = finite_or_none(raw)
    if number is None or number < 0:
        return 0.0
    if upper is not None:
        number = min(number, upper)
    return number


class ProgressCodec:
    """Read and write PersistedProgress records without ever raising store errors."""

    def __init__(self, store: DurableStore, logger: Optional[logging.Logger] = None) -> None:
        self._store = store
        self._logger = logger or logging.getLogger("watchgate.store")

    def load(self, content_key: str) -> PersistedProgress:
        keys = storage_keys(content_key)
        try:
            raw = {field: self._store.get(key) for field, key in keys.items()}
        except Exception as exc:
            self._logger.warning("Unable to read progress for '%s': %s", content_key, exc)
            return PersistedProgress()
        return PersistedProgress(
            max_watched_time=_decode(raw["max_watched_time"]),
            percent=_decode(raw["percent"], upper=100.0),
            last_position=_decode(raw["last_position"]),
        )

    def save(self, content_key: str, session: PlaybackSession) -> bool:
        """Write the durable projection of ``session``; False if the store refused it."""
        record = session.to_persisted()
        values = {"max_watched_time": record.max_watched_time, "last_position": record.last_position}
        percent = finite_or_none(record.percent)
        if percent is not None and 0 <= percent <= 100:
            values["percent"] = percent
        keys = storage_keys(content_key)
        try:
            for field, value in values.items():
                self._store.set(keys[field], repr(float(value)))
        except Exception as exc:
            self._logger.warning("Unable to persist progress for '%s': %s", content_key, exc)
            return False
        return True
