"""Progress-gated playback controller."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from .backend import (
    ENDED,
    METADATA_LOADED,
    PAUSE,
    PLAY,
    TIME_UPDATE,
    VOLUME_CHANGED,
    MediaBackend,
    MediaEvent,
)
from .gating import DEFAULT_UNLOCK_THRESHOLD, evaluate, progress_percent
from .persistence import ProgressCodec
from .seek_guard import DEFAULT_RESTORE_MARGIN, guard, restore_target
from .session import PlaybackSession, finite_or_none, known_duration
from .store import DurableStore

UNLOCKED = "unlocked"
PROGRESS_CHANGED = "progress-changed"


class ControllerError(Exception):
    """Raised when the controller is driven in a way it does not support."""


class ControllerState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ATTACHED = "attached"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"
    DETACHED = "detached"


_LIVE_STATES = frozenset(
    {
        ControllerState.ATTACHED,
        ControllerState.READY,
        ControllerState.PLAYING,
        ControllerState.PAUSED,
        ControllerState.ENDED,
    }
)


@dataclass(frozen=True)
class ProgressSnapshot:
    content_key: str
    state: str
    current_time: float
    duration: Optional[float]
    max_watched_time: float
    percent: float
    threshold_unlocked: bool
    is_playing: bool
    volume: float
    muted: bool


ProgressListener = Callable[[ProgressSnapshot], None]
EventHandler = Callable[[MediaEvent, PlaybackSession, MediaBackend], None]


class ProgressController:
    """Track genuinely watched time for one video and gate the next step on it.

    The controller only changes session state from backend events. Commands
    are forwarded to the backend and their effect is observed through the
    events that follow.
    """

    def __init__(
        self,
        store: DurableStore,
        unlock_threshold: float = DEFAULT_UNLOCK_THRESHOLD,
        restore_margin: float = DEFAULT_RESTORE_MARGIN,
        position_write_interval: float = 0.0,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._codec = ProgressCodec(store)
        self._threshold = float(unlock_threshold)
        self._restore_margin = max(0.0, float(restore_margin))
        self._write_interval = max(0.0, float(position_write_interval))
        self._logger = logger or logging.getLogger("watchgate.playback")
        self._clock = clock
        self._lock = threading.RLock()
        self._state = ControllerState.UNINITIALIZED
        self._session: Optional[PlaybackSession] = None
        self._backend: Optional[MediaBackend] = None
        self._pending_restore = 0.0
        self._unlock_notified = False
        self._last_write: Optional[float] = None
        self._listeners: Dict[str, List[ProgressListener]] = {UNLOCKED: [], PROGRESS_CHANGED: []}
        self._handlers: Dict[str, EventHandler] = {
            METADATA_LOADED: self._on_metadata_loaded,
            TIME_UPDATE: self._on_time_update,
            PLAY: self._on_play,
            PAUSE: self._on_pause,
            ENDED: self._on_ended,
            VOLUME_CHANGED: self._on_volume_changed,
        }

    # Lifecycle ----------------------------------------------------------

    def attach(self, content_key: str, backend: MediaBackend) -> None:
        """Seed a session from the store and start listening to ``backend``."""
        with self._lock:
            if self._state in _LIVE_STATES:
                raise ControllerError(f"Controller already attached to '{self.content_key}'")
            persisted = self._codec.load(content_key)
            session = PlaybackSession.from_persisted(content_key, persisted)
            session.current_time = persisted.last_position
            session.threshold_unlocked = persisted.percent >= self._threshold
            self._session = session
            self._backend = backend
            self._pending_restore = persisted.last_position
            self._unlock_notified = session.threshold_unlocked
            self._last_write = None
            backend.add_listener(self._handle_event)
            self._state = ControllerState.ATTACHED
            self._logger.info(
                "Attached '%s' (max watched %.1fs, %.1f%%, resume at %.1fs)",
                content_key,
                persisted.max_watched_time,
                persisted.percent,
                persisted.last_position,
            )
            self._notify(PROGRESS_CHANGED)
            # Metadata may have been loaded before we started listening.
            duration = known_duration(backend.duration)
            if duration is not None:
                self._on_metadata_loaded(MediaEvent(METADATA_LOADED, duration), session, backend)

    def detach(self) -> None:
        """Stop handling events and persisting. Safe to call repeatedly."""
        with self._lock:
            backend = self._backend
            self._backend = None
            if backend is not None:
                backend.remove_listener(self._handle_event)
            if self._state in _LIVE_STATES:
                self._state = ControllerState.DETACHED
                self._logger.info("Detached '%s'", self.content_key)

    # Commands -----------------------------------------------------------

    def request_seek(self, seconds: float) -> Optional[float]:
        """Seek as far towards ``seconds`` as the watched range allows.

        Returns the position sent to the backend, or None when detached.
        """
        with self._lock:
            backend = self._live_backend("seek")
            if backend is None:
                return None
            allowed = guard(seconds, self.max_watched_time, self.duration)
            if allowed < seconds:
                self._logger.debug("Seek to %.2fs limited to %.2fs", seconds, allowed)
            backend.seek(allowed)
            return allowed

    def request_play(self) -> None:
        with self._lock:
            backend = self._live_backend("play")
            if backend is not None:
                backend.play()

    def request_pause(self) -> None:
        with self._lock:
            backend = self._live_backend("pause")
            if backend is not None:
                backend.pause()

    def set_volume(self, volume: float) -> None:
        with self._lock:
            backend = self._live_backend("set_volume")
            if backend is not None:
                backend.set_volume(min(1.0, max(0.0, float(volume))))

    def set_muted(self, muted: bool) -> None:
        with self._lock:
            backend = self._live_backend("set_muted")
            if backend is not None:
                backend.set_muted(bool(muted))

    def toggle_play_pause(self) -> None:
        with self._lock:
            if self.is_playing:
                self.request_pause()
            else:
                self.request_play()

    def rewind(self, seconds: float = 15.0) -> Optional[float]:
        with self._lock:
            return self.request_seek(max(0.0, self.current_time - max(0.0, seconds)))

    def restart(self) -> Optional[float]:
        return self.request_seek(0.0)

    def toggle_mute(self) -> None:
        with self._lock:
            self.set_muted(not self.muted)

    # Subscriptions ------------------------------------------------------

    def subscribe(self, kind: str, listener: ProgressListener) -> None:
        """Register for ``"unlocked"`` (fired once) or ``"progress-changed"``."""
        with self._lock:
            if kind not in self._listeners:
                raise ControllerError(f"Unknown notification '{kind}'")
            if listener not in self._listeners[kind]:
                self._listeners[kind].append(listener)

    def unsubscribe(self, kind: str, listener: ProgressListener) -> None:
        with self._lock:
            listeners = self._listeners.get(kind, [])
            if listener in listeners:
                listeners.remove(listener)

    # Accessors ----------------------------------------------------------

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def content_key(self) -> str:
        return self._session.content_key if self._session else ""

    @property
    def current_time(self) -> float:
        return self._session.current_time if self._session else 0.0

    @property
    def duration(self) -> Optional[float]:
        return self._session.duration if self._session else None

    @property
    def max_watched_time(self) -> float:
        return self._session.max_watched_time if self._session else 0.0

    @property
    def percent(self) -> float:
        return self._session.percent if self._session else 0.0

    @property
    def threshold_unlocked(self) -> bool:
        return self._session.threshold_unlocked if self._session else False

    @property
    def is_playing(self) -> bool:
        return self._session.is_playing if self._session else False

    @property
    def volume(self) -> float:
        return self._session.volume if self._session else 1.0

    @property
    def muted(self) -> bool:
        return self._session.muted if self._session else False

    @property
    def unlock_threshold(self) -> float:
        return self._threshold

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return ProgressSnapshot(
                content_key=self.content_key,
                state=self._state.value,
                current_time=self.current_time,
                duration=self.duration,
                max_watched_time=self.max_watched_time,
                percent=self.percent,
                threshold_unlocked=self.threshold_unlocked,
                is_playing=self.is_playing,
                volume=self.volume,
                muted=self.muted,
            )

    # Event handling -----------------------------------------------------

    def _handle_event(self, event: MediaEvent) -> None:
        with self._lock:
            session, backend = self._session, self._backend
            if backend is None or session is None:
                return
            handler = self._handlers.get(event.kind)
            if handler is None:
                self._logger.debug("Ignoring unknown backend event '%s'", event.kind)
                return
            handler(event, session, backend)

    def _on_metadata_loaded(self, event: MediaEvent, session: PlaybackSession, backend: MediaBackend) -> None:
        raw = event.value if event.value is not None else backend.duration
        duration = known_duration(raw)
        if duration is None:
            self._logger.debug("Ignoring unusable duration %r for '%s'", raw, session.content_key)
            return
        if session.duration is not None and session.duration != duration:
            self._logger.info(
                "Duration of '%s' changed from %.2fs to %.2fs", session.content_key, session.duration, duration
            )
        session.duration = duration
        changed = False
        if session.max_watched_time > duration:
            self._logger.info(
                "Clamping max watched time of '%s' from %.2fs to new duration %.2fs",
                session.content_key,
                session.max_watched_time,
                duration,
            )
            session.max_watched_time = duration
            changed = True
        percent = progress_percent(session.max_watched_time, duration)
        if percent is not None and percent != session.percent:
            session.percent = percent
            changed = True
        if self._state is ControllerState.ATTACHED:
            self._state = ControllerState.PLAYING if session.is_playing else ControllerState.READY
        if changed:
            self._persist(session, force=True)
        self._refresh_gate(session)
        self._notify(PROGRESS_CHANGED)
        self._restore_position(session, backend)

    def _restore_position(self, session: PlaybackSession, backend: MediaBackend) -> None:
        pending, self._pending_restore = self._pending_restore, 0.0
        target = restore_target(pending, session.duration, self._restore_margin)
        if target is None:
            return
        self._logger.info("Resuming '%s' at %.2fs", session.content_key, target)
        try:
            backend.seek(target)
        except Exception as exc:
            self._logger.warning("Unable to resume '%s' at %.2fs: %s", session.content_key, target, exc)

    def _on_time_update(self, event: MediaEvent, session: PlaybackSession, backend: MediaBackend) -> None:
        position = finite_or_none(event.value if event.value is not None else backend.current_time)
        if position is None:
            return
        position = max(0.0, position)
        session.current_time = position
        reached = position if session.duration is None else min(position, session.duration)
        advanced = reached > session.max_watched_time
        if advanced:
            session.max_watched_time = reached
            percent = progress_percent(reached, session.duration)
            if percent is not None:
                session.percent = percent
        self._persist(session, force=advanced)
        self._refresh_gate(session)
        self._notify(PROGRESS_CHANGED)

    def _on_play(self, event: MediaEvent, session: PlaybackSession, backend: MediaBackend) -> None:
        session.is_playing = True
        self._move_to(ControllerState.PLAYING)

    def _on_pause(self, event: MediaEvent, session: PlaybackSession, backend: MediaBackend) -> None:
        session.is_playing = False
        self._move_to(ControllerState.PAUSED)

    def _on_ended(self, event: MediaEvent, session: PlaybackSession, backend: MediaBackend) -> None:
        session.is_playing = False
        self._move_to(ControllerState.ENDED)

    def _on_volume_changed(self, event: MediaEvent, session: PlaybackSession, backend: MediaBackend) -> None:
        volume = finite_or_none(event.value if event.value is not None else backend.volume)
        if volume is not None:
            session.volume = min(1.0, max(0.0, volume))
        session.muted = bool(event.muted if event.muted is not None else backend.muted)
        self._notify(PROGRESS_CHANGED)

    # Internal helpers ---------------------------------------------------

    def _move_to(self, state: ControllerState) -> None:
        # Playback states only apply once the duration is known.
        if self._state is not ControllerState.ATTACHED:
            self._state = state
        self._notify(PROGRESS_CHANGED)

    def _live_backend(self, command: str) -> Optional[MediaBackend]:
        if self._backend is None:
            self._logger.debug("Ignoring %s: controller is %s", command, self._state.value)
        return self._backend

    def _persist(self, session: PlaybackSession, force: bool) -> None:
        now = self._clock()
        if (
            not force
            and self._write_interval > 0
            and self._last_write is not None
            and now - self._last_write < self._write_interval
        ):
            return
        self._last_write = now
        self._codec.save(session.content_key, session)

    def _refresh_gate(self, session: PlaybackSession) -> None:
        if session.threshold_unlocked:
            return
        if not evaluate(session.max_watched_time, session.duration, self._threshold):
            return
        session.threshold_unlocked = True
        self._logger.info(
            "'%s' crossed the %.0f%% threshold at %.2fs",
            session.content_key,
            self._threshold,
            session.max_watched_time,
        )
        if not self._unlock_notified:
            self._unlock_notified = True
            self._notify(UNLOCKED)

    def _notify(self, kind: str) -> None:
        listeners = list(self._listeners[kind])
        if not listeners:
            return
        snapshot = self.snapshot()
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                self._logger.exception("'%s' listener failed", kind)
