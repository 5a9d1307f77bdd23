import json
import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Header, Request, Response, Security, status

from app.auth import get_api_key
from app.config import RelayConfig
from app.models.schemas import ErrorResponse, WebhookTextResponse
from app.upstream import Upstream
from app.utils import error_response, get_config, get_upstream

logger = logging.getLogger(__name__)

ANONYMOUS_CLIENT = "anon"
USER_AGENT = "voice-relay/1.0"

router = APIRouter()


def resolve_client_id(payload: dict, header_value: Optional[str]) -> str:
    """Body ``clientId`` wins, then the ``X-Client-Id`` header, then "anon"."""
    body_value = payload.get("clientId")
    if isinstance(body_value, bool):
        body_value = None
    if isinstance(body_value, (str, int)) and str(body_value).strip():
        return str(body_value).strip()
    if header_value and header_value.strip():
        return header_value.strip()
    return ANONYMOUS_CLIENT


@router.post(
    "/n8n",
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def relay_webhook(
    request: Request,
    x_client_id: Optional[str] = Header(None),
    config: RelayConfig = Depends(get_config),
    upstream: Upstream = Depends(get_upstream),
    authorization: Optional[str] = Security(get_api_key),
):
    """Forward an arbitrary JSON object to the configured workflow webhook."""
    if not config.webhook_url:
        return error_response(500, "missing N8N_WEBHOOK_URL")

    raw = bytearray()
    async for chunk in request.stream():
        raw.extend(chunk)
        if len(raw) > config.max_json_bytes:
            logger.warning(f"[n8n] body exceeds {config.max_json_bytes} bytes")
            return error_response(413, f"JSON body exceeds {config.max_json_bytes} bytes")

    try:
        payload = json.loads(raw) if raw.strip() else {}
    except (ValueError, RecursionError):
        logger.warning("[n8n] malformed JSON body")
        return error_response(400, "request body must be valid JSON")
    if not isinstance(payload, dict):
        return error_response(400, "request body must be a JSON object")

    client_id = resolve_client_id(payload, x_client_id)
    payload = {**payload, "clientId": client_id}

    try:
        r = await upstream.post(
            config.webhook_url,
            headers={
                "Content-Type": "application/json",
                # some WAFs reject requests without a UA
                "User-Agent": USER_AGENT,
                "X-Client-Id": client_id,
            },
            json=payload,
        )
    except httpx.HTTPError as e:
        logger.error(f"[n8n] fetch failed: {type(e).__name__} {e} {e.__cause__!r}")
        return error_response(502, "Upstream fetch failed", detail=str(e) or type(e).__name__)

    text = r.text
    # empty-body statuses cannot carry the JSON envelope
    relay_status = status.HTTP_200_OK if r.status_code in (204, 205) else r.status_code
    if not r.ok:
        logger.error(f"[n8n] upstream error: {r.status_code} {text}")
        return error_response(r.status_code, "webhook error", status=r.status_code, body=text)

    if "application/json" in r.content_type.lower() and text.strip():
        try:
            json.loads(text)
        except ValueError:
            logger.warning(f"[n8n] upstream declared JSON but sent: {text[:200]}")
        else:
            return Response(content=text, status_code=relay_status, media_type="application/json")

    return Response(
        content=WebhookTextResponse(text=text).model_dump_json(),
        status_code=relay_status,
        media_type="application/json",
    )
