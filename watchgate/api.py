"""FastAPI app factory for Watchgate."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Callable, Dict, Optional, TypeVar

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field

from .backend import BackendError
from .core import ApplicationCore
from .display import format_time, progress_message

T = TypeVar("T")


class SeekRequest(BaseModel):
    position: float = Field(ge=0)


class RewindRequest(BaseModel):
    seconds: Optional[float] = Field(default=None, ge=0)


class VolumeRequest(BaseModel):
    level: float = Field(ge=0, le=1)


class OperationResponse(BaseModel):
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None


def create_app(core: ApplicationCore) -> FastAPI:
    """Instantiate the FastAPI app with routes and dependencies."""
    app = FastAPI(title="Watchgate", version="1.0.0")

    @app.on_event("startup")
    async def _startup() -> None:
        core.initialise()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        core.shutdown()

    def _wrap_backend_call(action: Callable[[], T]) -> T:
        if not core.is_ready:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="No video session is attached",
            )
        try:
            return action()
        except BackendError as exc:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(exc),
            ) from exc

    @app.get("/api/status")
    async def get_status() -> Dict[str, Any]:
        controller = core.controller
        snapshot = controller.snapshot()
        return {
            "session": asdict(snapshot),
            "time_display": f"{format_time(snapshot.current_time)} / {format_time(snapshot.duration)}",
            "progress_message": progress_message(snapshot.threshold_unlocked, controller.unlock_threshold),
            "unlock_threshold": controller.unlock_threshold,
            "next_step_url": core.next_step_url(),
        }

    @app.post("/api/control/play-pause", response_model=OperationResponse)
    async def play_pause() -> OperationResponse:
        _wrap_backend_call(core.controller.toggle_play_pause)
        return OperationResponse(success=True, message="Toggled play/pause")

    @app.post("/api/control/rewind", response_model=OperationResponse)
    async def rewind(payload: Optional[RewindRequest] = None) -> OperationResponse:
        seconds = core.config.rewind_seconds
        if payload is not None and payload.seconds is not None:
            seconds = payload.seconds
        position = _wrap_backend_call(lambda: core.controller.rewind(seconds))
        return OperationResponse(
            success=True,
            message=f"Rewound {seconds:g}s",
            details={"position": position},
        )

    @app.post("/api/control/restart", response_model=OperationResponse)
    async def restart() -> OperationResponse:
        position = _wrap_backend_call(core.controller.restart)
        return OperationResponse(success=True, message="Restarted video", details={"position": position})

    @app.post("/api/control/seek", response_model=OperationResponse)
    async def seek(payload: SeekRequest) -> OperationResponse:
        position = _wrap_backend_call(lambda: core.controller.request_seek(payload.position))
        limited = position is not None and position < payload.position
        return OperationResponse(
            success=True,
            message="Seek limited to watched range" if limited else "Seek requested",
            details={"requested": payload.position, "position": position},
        )

    @app.post("/api/control/volume", response_model=OperationResponse)
    async def set_volume(payload: VolumeRequest) -> OperationResponse:
        def _apply() -> None:
            core.controller.set_volume(payload.level)
            core.controller.set_muted(payload.level == 0)

        _wrap_backend_call(_apply)
        return OperationResponse(success=True, message="Volume updated")

    @app.post("/api/control/mute", response_model=OperationResponse)
    async def toggle_mute() -> OperationResponse:
        _wrap_backend_call(core.controller.toggle_mute)
        return OperationResponse(success=True, message="Toggled mute")

    return app
