from typing import Any, Optional

from pydantic import BaseModel, Field

AUDIO_CONTENT_TYPES = {
    "mp3": "audio/mpeg",
    "opus": "audio/ogg; codecs=opus",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "wav": "audio/wav",
    "pcm": "audio/l16",
}


class TTSRequest(BaseModel):
    text: Optional[str] = None
    voice: str = "alloy"
    format: str = Field("mp3", pattern=r"^[A-Za-z0-9_-]{1,16}$")

    @property
    def content_type(self) -> str:
        return AUDIO_CONTENT_TYPES.get(self.format, "audio/mpeg")


class STTResponse(BaseModel):
    text: str


class WebhookTextResponse(BaseModel):
    text: str


class ErrorResponse(BaseModel):
    error: str
    status: Optional[int] = None
    body: Optional[str] = None
    detail: Optional[Any] = None
