"""Shared fixtures: a scripted media backend and fallible stores."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

from watchgate.backend import (
    METADATA_LOADED,
    TIME_UPDATE,
    VOLUME_CHANGED,
    BackendError,
    MediaBackend,
    MediaEvent,
)
from watchgate.controller import ProgressController
from watchgate.settings import AppConfig
from watchgate.store import DurableStore, MemoryStore


class ScriptedBackend(MediaBackend):
    """Backend whose events are driven by the test and whose commands are recorded."""

    def __init__(self) -> None:
        super().__init__()
        self.commands: List[Tuple] = []
        self.loaded: Optional[Path] = None
        self.started = False
        self.released = False
        self.fail_commands = False
        self._current_time = 0.0
        self._duration: Optional[float] = None
        self._volume = 1.0
        self._muted = False

    # Scripting helpers ------------------------------------------------

    def load_metadata(self, duration: float) -> None:
        self._duration = duration
        self._emit(MediaEvent(METADATA_LOADED, duration))

    def tick(self, *positions: float) -> None:
        for position in positions:
            self._current_time = position
            self._emit(MediaEvent(TIME_UPDATE, position))

    def fire(self, kind: str) -> None:
        self._emit(MediaEvent(kind))

    def change_volume(self, volume: float, muted: bool) -> None:
        self._volume = volume
        self._muted = muted
        self._emit(MediaEvent(VOLUME_CHANGED, volume, muted))

    def seeks(self) -> List[float]:
        return [command[1] for command in self.commands if command[0] == "seek"]

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    # MediaBackend -----------------------------------------------------

    def start(self) -> None:
        self.started = True

    def release(self) -> None:
        self.released = True

    def load(self, path: Path) -> None:
        self.loaded = path

    def _record(self, *command) -> None:
        if self.fail_commands:
            raise BackendError(f"backend rejected {command[0]}")
        self.commands.append(command)

    def play(self) -> None:
        self._record("play")

    def pause(self) -> None:
        self._record("pause")

    def seek(self, seconds: float) -> None:
        self._record("seek", seconds)

    def set_volume(self, volume: float) -> None:
        self._record("volume", volume)

    def set_muted(self, muted: bool) -> None:
        self._record("muted", muted)

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def duration(self) -> Optional[float]:
        return self._duration

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def muted(self) -> bool:
        return self._muted


class FailingStore(DurableStore):
    """Store that is never available."""

    def __init__(self) -> None:
        self.calls = 0

    def get(self, key: str) -> Optional[str]:
        self.calls += 1
        raise OSError("storage unavailable")

    def set(self, key: str, value: str) -> None:
        self.calls += 1
        raise OSError("quota exceeded")

    def remove(self, key: str) -> None:
        self.calls += 1
        raise OSError("storage unavailable")


class CountingStore(MemoryStore):
    def __init__(self, initial=None) -> None:
        super().__init__(initial)
        self.writes: List[Tuple[str, str]] = []

    def set(self, key: str, value: str) -> None:
        self.writes.append((key, value))
        super().set(key, value)


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def store() -> CountingStore:
    return CountingStore()


@pytest.fixture
def controller(store: CountingStore) -> ProgressController:
    return ProgressController(store, unlock_threshold=50, restore_margin=1.0)


@pytest.fixture
def make_config(tmp_path: Path):
    media = tmp_path / "video.mp4"
    media.write_bytes(b"\x00")
    base = AppConfig(
        media_path=media,
        content_key="demo",
        unlock_threshold=50.0,
        restore_margin=1.0,
        rewind_seconds=15.0,
        position_write_interval=0.0,
        store_path=tmp_path / "progress.json",
        log_directory=tmp_path / "logs",
        log_level="INFO",
        vlc_options=["--quiet"],
        autoplay=False,
        next_step_url="https://example.test/book",
        api_host="127.0.0.1",
        api_port=8000,
    )

    def _make(**overrides) -> AppConfig:
        return replace(base, **overrides)

    return _make

