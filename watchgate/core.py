"""Application core wiring helpers."""

from __future__ import annotations

import logging
from typing import Optional

from .backend import BackendError, MediaBackend
from .controller import UNLOCKED, ProgressController, ProgressSnapshot
from .settings import AppConfig
from .store import DurableStore, JsonFileStore


class ApplicationCore:
    """Holds the main services used by the FastAPI layer."""

    def __init__(
        self,
        config: AppConfig,
        backend: Optional[MediaBackend] = None,
        store: Optional[DurableStore] = None,
    ) -> None:
        self.config = config
        self._logger = logging.getLogger("watchgate")
        self.store = store or JsonFileStore(config.store_path)
        self.backend = backend or self._build_vlc_backend()
        self.controller = ProgressController(
            self.store,
            unlock_threshold=config.unlock_threshold,
            restore_margin=config.restore_margin,
            position_write_interval=config.position_write_interval,
        )
        self.controller.subscribe(UNLOCKED, self._on_unlocked)
        self._initialised = False

    def _build_vlc_backend(self) -> MediaBackend:
        from .vlc_backend import VlcBackend

        return VlcBackend(self.config.vlc_options)

    def initialise(self) -> None:
        """Load the configured video and attach the progress controller."""
        if self._initialised:
            return
        self._logger.info("Initialising application core")
        media_path = self.config.media_path
        if not media_path.exists():
            self._logger.warning("Media file not found: %s", media_path)
        else:
            self.backend.start()
            try:
                self.backend.load(media_path)
            except BackendError as exc:
                self._logger.exception("Failed to load %s: %s", media_path, exc)
        self.controller.attach(self.config.content_key, self.backend)
        self._initialised = True
        if self.config.autoplay and media_path.exists():
            try:
                self.controller.request_play()
                self._logger.info("Playback started for '%s'", self.config.content_key)
            except BackendError as exc:
                self._logger.exception("Failed to start playback: %s", exc)

    def shutdown(self) -> None:
        self.controller.detach()
        self.backend.release()
        self._initialised = False
        self._logger.info("Application core stopped")

    @property
    def is_ready(self) -> bool:
        return self._initialised

    def next_step_url(self) -> Optional[str]:
        """Link revealed once the watch threshold is met."""
        if not self.controller.threshold_unlocked or not self.config.next_step_url:
            return None
        return self.config.next_step_url

    def _on_unlocked(self, snapshot: ProgressSnapshot) -> None:
        self._logger.info(
            "Next step unlocked for '%s' at %.1f%%", snapshot.content_key, snapshot.percent
        )
