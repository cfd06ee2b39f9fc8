"""libVLC implementation of the media backend."""

from __future__ import annotations

import logging
import queue
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import vlc

from .backend import (
    ENDED,
    METADATA_LOADED,
    PAUSE,
    PLAY,
    TIME_UPDATE,
    VOLUME_CHANGED,
    BackendError,
    MediaBackend,
    MediaEvent,
)
from .session import known_duration

_STOP = object()


class VLCError(BackendError):
    """Base exception for VLC control issues."""


def _event_table() -> Dict[str, Tuple[str, Callable[[object], Optional[float]]]]:
    """Map libVLC event names onto backend events and their payload readers."""
    return {
        "MediaPlayerLengthChanged": (METADATA_LOADED, lambda ev: ev.u.new_length / 1000.0),
        "MediaPlayerTimeChanged": (TIME_UPDATE, lambda ev: ev.u.new_time / 1000.0),
        "MediaPlayerPlaying": (PLAY, lambda ev: None),
        "MediaPlayerPaused": (PAUSE, lambda ev: None),
        "MediaPlayerStopped": (PAUSE, lambda ev: None),
        "MediaPlayerEndReached": (ENDED, lambda ev: None),
        "MediaPlayerAudioVolume": (VOLUME_CHANGED, lambda ev: None),
        "MediaPlayerMuted": (VOLUME_CHANGED, lambda ev: None),
        "MediaPlayerUnmuted": (VOLUME_CHANGED, lambda ev: None),
    }


class VlcBackend(MediaBackend):
    """Drive a single libVLC media player.

    libVLC must not be called from its own event callbacks, so callbacks only
    enqueue events; a dispatcher thread delivers them to listeners in order.
    """

    def __init__(self, options: Optional[List[str]] = None, logger: Optional[logging.Logger] = None) -> None:
        super().__init__(logger or logging.getLogger("watchgate.playback"))
        self._options = list(options or ["--quiet"])
        self._media_lock = threading.RLock()
        self._events: "queue.Queue[object]" = queue.Queue()
        self._attached: List[object] = []
        self._instance, self._player = self._build_vlc_stack()
        self._thread: Optional[threading.Thread] = None
        self._released = False

    # Internal helpers -------------------------------------------------

    def _build_vlc_stack(self) -> tuple[vlc.Instance, vlc.MediaPlayer]:
        """Instantiate libVLC objects and hook the player events."""
        instance = vlc.Instance(self._options)
        if instance is None:
            raise VLCError(f"Unable to create libVLC instance with options {self._options}")
        player = instance.media_player_new()
        manager = player.event_manager()
        for vlc_name, (kind, reader) in _event_table().items():
            event_type = getattr(vlc.EventType, vlc_name, None)
            if event_type is None:
                continue
            manager.event_attach(event_type, self._on_vlc_event, kind, reader)
            self._attached.append(event_type)
        return instance, player

    def _release_vlc_stack(self) -> None:
        """Release libVLC objects, ignoring errors."""
        manager = self._player.event_manager()
        for event_type in self._attached:
            try:
                manager.event_detach(event_type)
            except Exception:
                self._logger.debug("Failed to detach VLC event %s", event_type)
        self._attached = []
        for attr in ("_player", "_instance"):
            obj = getattr(self, attr, None)
            if obj is None:
                continue
            try:
                obj.release()
            except Exception:
                self._logger.debug("Failed to release %s", attr)

    def _on_vlc_event(self, event: object, kind: str, reader: Callable[[object], Optional[float]]) -> None:
        # Runs on a libVLC thread.
        try:
            value = reader(event)
        except (AttributeError, TypeError):
            value = None
        self._events.put(MediaEvent(kind, value))

    def _dispatch(self) -> None:
        while True:
            item = self._events.get()
            if item is _STOP:
                return
            self._emit(item)  # type: ignore[arg-type]

    def _call(self, description: str, action: Callable[[], object]) -> object:
        with self._media_lock:
            try:
                result = action()
            except Exception as exc:  # pragma: no cover - libVLC exceptions are opaque
                raise VLCError(f"Unable to {description}: {exc}") from exc
        if result == -1:
            raise VLCError(f"Unable to {description}")
        return result

    # Lifecycle --------------------------------------------------------

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._dispatch, name="VlcEventDispatcher", daemon=True)
        self._thread.start()

    def load(self, path: Path) -> None:
        """Replace the current media with the file at ``path``."""
        with self._media_lock:
            try:
                media = self._instance.media_new_path(str(path))
                self._player.set_media(media)
                media.release()
            except Exception as exc:  # pragma: no cover - libVLC exceptions are opaque
                raise VLCError(f"Unable to load {path.name}: {exc}") from exc
            self._logger.info("Loaded %s", path)

    def release(self) -> None:
        with self._media_lock:
            if self._released:
                return
            self._released = True
            try:
                self._player.stop()
            except Exception:
                self._logger.debug("Failed to stop VLC before release")
            self._release_vlc_stack()
        self._events.put(_STOP)
        if self._thread:
            self._thread.join(timeout=2.0)

    # Commands ---------------------------------------------------------

    def play(self) -> None:
        self._call("start playback", self._player.play)

    def pause(self) -> None:
        self._call("pause playback", lambda: self._player.set_pause(1))

    def seek(self, seconds: float) -> None:
        self._call(f"seek to {seconds:.2f}s", lambda: self._player.set_time(int(round(seconds * 1000))))

    def set_volume(self, volume: float) -> None:
        percent = int(round(min(1.0, max(0.0, volume)) * 100))
        self._call("set volume", lambda: self._player.audio_set_volume(percent))

    def set_muted(self, muted: bool) -> None:
        self._call("change mute state", lambda: self._player.audio_set_mute(bool(muted)))

    # Properties -------------------------------------------------------

    @property
    def current_time(self) -> float:
        with self._media_lock:
            return max(0, self._player.get_time()) / 1000.0

    @property
    def duration(self) -> Optional[float]:
        with self._media_lock:
            return known_duration(self._player.get_length() / 1000.0)

    @property
    def volume(self) -> float:
        with self._media_lock:
            return max(0, self._player.audio_get_volume()) / 100.0

    @property
    def muted(self) -> bool:
        with self._media_lock:
            return self._player.audio_get_mute() == 1
