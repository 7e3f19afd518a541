"""Entry point for the tactical board API server.

Serves the combo API and the front-end bundle with Uvicorn.  Host and
port come from ``HOST`` and ``PORT`` (defaults ``0.0.0.0`` and
``3000``); see ``tacboard_api.app.core.config`` for the rest of the
settings, which may also be placed in a ``.env`` file.

The Telegram bot is a separate process (``python telegram_board_bot.py``)
so either side can be deployed or restarted on its own.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from tacboard_api.app.core.config import settings
from tacboard_api.app.main import app

logger = logging.getLogger(__name__)


async def run_api() -> None:
    """Start the API server; Uvicorn handles SIGINT/SIGTERM itself."""
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    logger.info("Starting web/API server on port %s", settings.port)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(run_api())
    except (KeyboardInterrupt, SystemExit):
        pass
