from typing import Optional

import httpx
import logging
import time
from fastapi import APIRouter, Body, Depends, Response, Security, status

from app.auth import get_api_key
from app.config import RelayConfig
from app.models.schemas import ErrorResponse, TTSRequest
from app.upstream import Upstream
from app.utils import error_response, get_config, get_upstream

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/tts",
    status_code=status.HTTP_200_OK,
    response_class=Response,
    responses={
        200: {"content": {"audio/mpeg": {}}},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def synthesize(
    tts_request: Optional[TTSRequest] = Body(None),
    config: RelayConfig = Depends(get_config),
    upstream: Upstream = Depends(get_upstream),
    authorization: Optional[str] = Security(get_api_key),
):
    if not config.openai_api_key:
        return error_response(500, "missing OPENAI_API_KEY")

    tts_request = tts_request or TTSRequest()
    text = tts_request.text
    if not text or not text.strip():
        logger.warning("[tts] request without text")
        return error_response(400, "missing text content")

    start_time = time.time()
    try:
        r = await upstream.post(
            config.speech_url,
            headers={
                "Authorization": f"Bearer {config.openai_api_key}",
                "Content-Type": "application/json",
            },
            json={
                "model": config.tts_model,
                "input": text,
                "voice": tts_request.voice,
                "response_format": tts_request.format,
            },
        )
    except httpx.HTTPError as e:
        logger.error(f"[tts] fetch failed: {type(e).__name__} {e}")
        return error_response(502, str(e) or "TTS proxy error")

    if not r.ok:
        logger.error(f"[tts] upstream error: {r.status_code} {r.text}")
        return error_response(r.status_code, r.text or "TTS error")

    elapsed = time.time() - start_time
    logger.info(f"[tts] {len(r.body)} bytes of {tts_request.format} in {elapsed:.2f}s | Text : {text[:60]}")
    return Response(
        content=r.body,
        media_type=tts_request.content_type,
        headers={"Content-Disposition": f'inline; filename="speech.{tts_request.format}"'},
    )
