import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_ORIGINS = ("https://justin-321-hub.github.io",)


def _env(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


@dataclass(frozen=True)
class RelayConfig:
    """Process-wide settings handed to the app factory."""

    openai_api_key: Optional[str] = None
    openai_base_url: str = OPENAI_BASE_URL
    stt_model: str = "whisper-1"
    tts_model: str = "gpt-4o-mini-tts"
    webhook_url: Optional[str] = None
    api_key: Optional[str] = None
    allowed_origins: tuple = field(default=DEFAULT_ORIGINS)
    max_audio_bytes: int = 20 * 1024 * 1024
    max_json_bytes: int = 1024 * 1024
    upstream_timeout: float = 60.0

    @property
    def transcription_url(self) -> str:
        return f"{self.openai_base_url.rstrip('/')}/audio/transcriptions"

    @property
    def speech_url(self) -> str:
        return f"{self.openai_base_url.rstrip('/')}/audio/speech"

    @classmethod
    def from_env(cls) -> "RelayConfig":
        load_dotenv()
        origins = _env("ALLOWED_ORIGINS")
        return cls(
            openai_api_key=_env("OPENAI_API_KEY"),
            openai_base_url=_env("OPENAI_BASE_URL") or OPENAI_BASE_URL,
            stt_model=_env("STT_MODEL") or "whisper-1",
            tts_model=_env("TTS_MODEL") or "gpt-4o-mini-tts",
            webhook_url=_env("N8N_WEBHOOK_URL"),
            api_key=_env("API_KEY"),
            allowed_origins=(
                tuple(o.strip() for o in origins.split(",") if o.strip())
                if origins else DEFAULT_ORIGINS
            ),
            max_audio_bytes=int(float(_env("MAX_AUDIO_MB") or 20) * 1024 * 1024),
            max_json_bytes=int(float(_env("MAX_JSON_KB") or 1024) * 1024),
            upstream_timeout=float(_env("UPSTREAM_TIMEOUT") or 60),
        )
