from typing import Optional

import httpx
import logging
from fastapi import APIRouter, Depends, File, Form, Response, Security, UploadFile, status

from app.auth import get_api_key
from app.config import RelayConfig
from app.models.schemas import ErrorResponse, STTResponse
from app.upstream import Upstream
from app.utils import error_response, get_config, get_upstream, upload_filename

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/whisper",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"model": STTResponse},
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def transcribe(
    file: Optional[UploadFile] = File(None),
    language: Optional[str] = Form(None),
    prompt: Optional[str] = Form(None),
    config: RelayConfig = Depends(get_config),
    upstream: Upstream = Depends(get_upstream),
    authorization: Optional[str] = Security(get_api_key),
):
    """Relay one recorded clip to the transcription API and return its JSON."""
    if not config.openai_api_key:
        return error_response(500, "missing OPENAI_API_KEY")

    # read one byte past the cap so oversize uploads are never fully loaded
    audio = await file.read(config.max_audio_bytes + 1) if file is not None else b""
    if not audio:
        logger.warning("[whisper] request without audio (field: file)")
        return error_response(400, "missing audio file (field: file)")
    if len(audio) > config.max_audio_bytes:
        logger.warning(f"[whisper] audio exceeds {config.max_audio_bytes} bytes")
        return error_response(413, f"audio file exceeds {config.max_audio_bytes} bytes")

    mime = file.content_type or "audio/webm"
    form = {"model": config.stt_model}
    if language:
        form["language"] = language
    if prompt:
        form["prompt"] = prompt

    try:
        r = await upstream.post(
            config.transcription_url,
            headers={"Authorization": f"Bearer {config.openai_api_key}"},
            data=form,
            files={"file": (upload_filename(mime), audio, mime)},
        )
    except httpx.HTTPError as e:
        logger.error(f"[whisper] fetch failed: {type(e).__name__} {e}")
        return error_response(502, str(e) or "Whisper API error")

    if not r.ok:
        logger.error(f"[whisper] upstream error: {r.status_code} {r.text}")
        return error_response(r.status_code, r.text or "Whisper API error")

    return Response(
        content=r.body,
        status_code=status.HTTP_200_OK,
        media_type=r.content_type or "application/json",
    )
