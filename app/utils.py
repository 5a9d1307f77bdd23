import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from app.config import RelayConfig
from app.models.schemas import ErrorResponse
from app.upstream import Upstream

logger = logging.getLogger(__name__)

UPLOAD_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/mp4": "m4a",
    "audio/x-m4a": "m4a",
    "audio/flac": "flac",
    "video/webm": "webm",
}


def get_config(request: Request) -> RelayConfig:
    return request.app.state.config


def get_upstream(request: Request) -> Upstream:
    return request.app.state.upstream


def error_response(status_code: int, error: str, **extra) -> JSONResponse:
    """Build the ``{"error": ...}`` body every failure path returns."""
    payload = ErrorResponse(error=error, **extra)
    return JSONResponse(status_code=status_code, content=payload.model_dump(exclude_none=True))


def upload_filename(media_type: str) -> str:
    """Pick a filename whose extension the transcription API recognises.

    >>> upload_filename("audio/webm;codecs=opus")
    'audio.webm'
    """
    base = media_type.split(";")[0].strip().lower()
    return f"audio.{UPLOAD_EXTENSIONS.get(base, 'webm')}"
