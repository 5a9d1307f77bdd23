import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException

from app.api import stt, tts, webhook
from app.config import RelayConfig
from app.upstream import HttpxUpstream, Upstream
from app.utils import error_response

logger = logging.getLogger(__name__)


def create_app(config: Optional[RelayConfig] = None, upstream: Optional[Upstream] = None) -> FastAPI:
    """Build the relay app around one config value and one outbound client."""
    config = config or RelayConfig.from_env()
    owned = upstream is None
    if owned:
        upstream = HttpxUpstream(timeout=config.upstream_timeout)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Relay ready | transcription/speech key: {'set' if config.openai_api_key else 'missing'}"
            f" | webhook: {'set' if config.webhook_url else 'missing'}"
            f" | shared secret: {'on' if config.api_key else 'off'}"
        )
        yield
        if owned:
            await upstream.aclose()

    app = FastAPI(title="Voice Relay", version="1.0.0", lifespan=lifespan)
    app.state.config = config
    app.state.upstream = upstream

    @app.middleware("http")
    async def limit_json_body(request: Request, call_next):
        if request.headers.get("content-type", "").startswith("application/json"):
            length = request.headers.get("content-length", "")
            if length.isdigit() and int(length) > config.max_json_bytes:
                logger.warning(f"Rejected {length}-byte JSON body on {request.url.path}")
                return error_response(413, f"JSON body exceeds {config.max_json_bytes} bytes")
        return await call_next(request)

    # added last so CORS headers wrap the 413 above
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.allowed_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Client-Id"],
        max_age=86400,
    )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        content = exc.detail if isinstance(exc.detail, dict) else {"error": str(exc.detail)}
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request on {request.url.path}: {exc.errors()}")
        return error_response(400, "invalid request", detail=jsonable_errors(exc))

    @app.get("/")
    def root():
        return {"message": "Welcome to the Voice Relay API"}

    @app.get("/health", response_class=PlainTextResponse)
    def health():
        return "ok"

    app.include_router(stt.router, prefix="/api", tags=["STT"])
    app.include_router(webhook.router, prefix="/api", tags=["Webhook"])
    app.include_router(tts.router, prefix="/api", tags=["TTS"])
    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


app = create_app()
