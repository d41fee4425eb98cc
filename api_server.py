from __future__ import annotations  # FastAPI server exposing the interview practice API

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from api.routes import resume_router, router, validation_error_handler
from config import (
    GENERATOR_KEY,
    TRANSCRIBER_KEY,
    bind_model,
    load_config,
    resolve_route,
    resolve_transcription_route,
    settings,
)
from config.registry import get_model
from llm_gateway import text_generator, transcriber
from observability import configure_logging


logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parent


def _is_bound(key: str) -> bool:
    try:
        get_model(key)
    except KeyError:
        return False
    return True


def bind_collaborators(config_path: Path) -> None:
    """Bind HTTP generator/transcriber adapters unless something is already bound."""

    if not config_path.exists():
        logger.warning("app config not found at %s; generator must be bound manually", config_path)
        return
    cfg = load_config(config_path)
    if not _is_bound(GENERATOR_KEY):
        bind_model(GENERATOR_KEY, text_generator(resolve_route(cfg, GENERATOR_KEY)))
    route = resolve_transcription_route(cfg, TRANSCRIBER_KEY)
    if route is not None and not _is_bound(TRANSCRIBER_KEY):
        bind_model(TRANSCRIBER_KEY, transcriber(route))


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    config_path = Path(settings.APP_CONFIG_PATH)
    if not config_path.is_absolute():
        config_path = ROOT / config_path
    bind_collaborators(config_path)
    logger.info(
        "interview API ready backend=%s max_turns=%d ttl_s=%d",
        settings.SESSION_BACKEND,
        settings.INTERVIEW_MAX_TURNS,
        settings.SESSION_TTL_SECONDS,
    )
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Interview Coach API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(router)
    app.include_router(resume_router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
