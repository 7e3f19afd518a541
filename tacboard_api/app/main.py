"""
Main entrypoint for the Tactical Board API.

This module assembles the FastAPI application: logging, CORS, the
combo routes under ``/api``, the front-end bundle at ``/`` and the
combo store.  ``create_app`` builds and configures the app, which is
then instantiated at module import time as ``app`` so it can be run
with uvicorn::

    uvicorn tacboard_api.app.main:app --reload

Tests build their own application with ``create_app(settings, store)``
to inject an isolated store.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .api.endpoints.combos import error_response
from .api.router import router as api_router
from .core.config import Settings, settings as default_settings
from .core.db import ComboStore
from .core.logging_config import setup_logging

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def resolve_static_dir(static_dir: str) -> Path:
    if os.path.isabs(static_dir):
        return Path(static_dir)
    return (PROJECT_ROOT / static_dir).resolve()


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ComboStore] = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to use; defaults to the environment-derived
        module-level settings.
    store : Optional[ComboStore]
        Combo store to serve from.  When omitted a store is built from
        ``settings.database_url``.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    settings = settings or default_settings
    # Initialise logging before anything else so that the startup
    # messages below are formatted consistently.
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    app.state.store = store if store is not None else ComboStore(settings.database_url)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api")

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning("Invalid request to %s: %s", request.url.path, exc.errors())
        return error_response("Invalid request body")

    # The front-end is mounted last so that it never shadows /api routes.
    static_path = resolve_static_dir(settings.static_dir)
    if static_path.is_dir():
        app.mount("/", StaticFiles(directory=str(static_path), html=True), name="static")
    else:
        logger.warning("Static directory %s not found; front-end will not be served", static_path)

    @app.on_event("startup")
    async def startup_event() -> None:
        # A store that cannot be reached is not fatal: the API and the
        # front-end keep running and combo operations report errors.
        if app.state.store.connect():
            logger.info("Combo store connected")
        else:
            logger.warning("Running without combo store; combo requests will fail")

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
