"""Abstract media backend consumed by the progress controller."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

METADATA_LOADED = "metadata-loaded"
TIME_UPDATE = "time-update"
PLAY = "play"
PAUSE = "pause"
ENDED = "ended"
VOLUME_CHANGED = "volume-changed"


class BackendError(Exception):
    """A backend refused or failed to carry out a command."""


@dataclass(frozen=True)
class MediaEvent:
    """One notification from a backend.

    ``value`` carries the duration for ``metadata-loaded``, the playback
    position for ``time-update`` and the volume (0..1) for ``volume-changed``.
    It may be None, in which case listeners read the backend properties.
    """

    kind: str
    value: Optional[float] = None
    muted: Optional[bool] = None


MediaListener = Callable[[MediaEvent], None]


class MediaBackend(ABC):
    """A playable resource driven by commands and observed through events.

    Commands may complete asynchronously; callers must wait for the matching
    event instead of trusting a command's effect.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._listeners: List[MediaListener] = []
        self._listeners_lock = threading.RLock()
        self._logger = logger or logging.getLogger("watchgate.playback")

    # Event stream -------------------------------------------------------

    def add_listener(self, listener: MediaListener) -> None:
        with self._listeners_lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: MediaListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _emit(self, event: MediaEvent) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                self._logger.exception("Listener failed while handling '%s'", event.kind)

    # Lifecycle ----------------------------------------------------------

    def start(self) -> None:
        """Begin delivering events. Backends that emit synchronously need nothing here."""

    def release(self) -> None:
        """Free backend resources; no events are delivered afterwards."""

    @abstractmethod
    def load(self, path: Path) -> None:
        """Replace the current resource with the media at ``path``."""

    # Commands -----------------------------------------------------------

    @abstractmethod
    def play(self) -> None: ...

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def seek(self, seconds: float) -> None: ...

    @abstractmethod
    def set_volume(self, volume: float) -> None: ...

    @abstractmethod
    def set_muted(self, muted: bool) -> None: ...

    # Properties ---------------------------------------------------------

    @property
    @abstractmethod
    def current_time(self) -> float: ...

    @property
    @abstractmethod
    def duration(self) -> Optional[float]: ...

    @property
    @abstractmethod
    def volume(self) -> float: ...

    @property
    @abstractmethod
    def muted(self) -> bool: ...
