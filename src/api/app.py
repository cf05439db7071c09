"""FastAPI application factory + translation of domain errors into HTTP responses."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.routes import router
from src.core.config import Settings, load_settings
from src.core.exceptions import (
    ConflictError,
    GameError,
    InsufficientFundsError,
    StateNotFoundError,
)
from src.core.logging_config import configure_logging
from src.services.context import AppContext
from src.sync.scheduler import ResetScheduler

logger = logging.getLogger(__name__)

# Anything else deriving from GameError is a rule violation -> 400
ERROR_STATUS_CODES: dict[type[GameError], int] = {
    InsufficientFundsError: 402,
    StateNotFoundError: 404,
    ConflictError: 409,
}


def status_code_for(error: GameError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(error, error_type):
            return status_code
    return 400


async def handle_game_error(request: Request, exc: Exception) -> JSONResponse:
    status_code = status_code_for(exc) if isinstance(exc, GameError) else 500
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app(
    settings: Optional[Settings] = None, scheduler: Optional[ResetScheduler] = None
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.context = AppContext.create(settings, scheduler=scheduler)
        try:
            yield
        finally:
            app.state.context.close()

    app = FastAPI(title="Shared chess session", lifespan=lifespan)
    app.add_exception_handler(GameError, handle_game_error)
    app.include_router(router)
    return app
