"""A Telegram companion bot for the tactical board.

The bot talks directly to Telegram's HTTP API using the ``requests``
library and performs long polling to receive updates.  It has a single
job: when a user sends ``/start`` it replies with a greeting and a
button that opens the tactical board mini app.  On launch it also
registers ``/start`` in the bot's command menu.

The bot runs as its own process, independently of the API server, and
reads its configuration from environment variables (a ``.env`` file is
loaded if present):

``BOT_TOKEN``
    The token assigned by BotFather.  If missing the bot does not start
    and the process exits quietly; the API is not affected.

``WEB_APP_URL``
    Link opened by the greeting button.  Defaults to the board mini app.

SIGINT and SIGTERM stop the polling loop cleanly.
"""

from __future__ import annotations

import logging
import os
import random
import signal
import time
from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv


logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
logger = logging.getLogger(__name__)

DEFAULT_WEB_APP_URL = "https://t.me/ComboBoardBot/board"

GREETING_TEXT = "Hi team! 🏀\n\nOpen the tactical board mini app right here:"
OPEN_BOARD_BUTTON = "🏀 Open the board"

BOT_COMMANDS = [
    {"command": "start", "description": "🏀 Open the tactical board"},
]


class TelegramBoardBot:
    """Long-polling bot that answers ``/start`` with a link to the board."""

    def __init__(self, bot_token: Optional[str] = None, web_app_url: Optional[str] = None) -> None:
        self.bot_token = bot_token or os.getenv("BOT_TOKEN")
        if not self.bot_token:
            raise RuntimeError("Missing BOT_TOKEN environment variable")
        self.web_app_url = web_app_url or os.getenv("WEB_APP_URL") or DEFAULT_WEB_APP_URL
        self.telegram_api_url = f"https://api.telegram.org/bot{self.bot_token}"
        # Keep track of the last processed update to avoid repeated processing
        self.last_update_id = 0
        # Counter for consecutive request failures used by the backoff
        self.retry_attempts = 0
        self.running = False

    # ------------------------------------------------------------------
    # Telegram API helpers
    # ------------------------------------------------------------------
    def _reset_backoff(self) -> None:
        """Reset the retry attempt counter after a successful request."""
        self.retry_attempts = 0

    def _sleep_backoff(self, resp: Optional[requests.Response] = None) -> None:
        """Sleep for an exponentially increasing interval with jitter.

        If a ``Retry-After`` header is present on a 429 response it is
        respected.  Otherwise the delay doubles with each attempt up to a
        ceiling of 60 seconds and a random jitter is added.
        """
        self.retry_attempts += 1
        delay = None
        if resp is not None and resp.status_code == 429:
            retry_after = resp.headers.get("Retry-After")
            if retry_after is not None:
                try:
                    delay = float(retry_after)
                except ValueError:
                    pass
        if delay is None:
            delay = min(2 ** (self.retry_attempts - 1), 60) + random.random()
        logger.warning(
            "Request failure #%d, sleeping %.1fs before retry", self.retry_attempts, delay
        )
        time.sleep(delay)

    def _telegram_request(
        self,
        http_method: str,
        method: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
        timeout: int = 10,
    ) -> Optional[Dict[str, Any]]:
        """Perform a request against the Telegram API, retrying until the bot stops."""
        url = f"{self.telegram_api_url}/{method}"
        while True:
            try:
                resp = requests.request(
                    http_method,
                    url,
                    params=params,
                    json=payload,
                    timeout=timeout,
                )
                if resp.status_code == 429:
                    self._sleep_backoff(resp)
                    if not self.running:
                        return None
                    continue
                resp.raise_for_status()
                self._reset_backoff()
                try:
                    return resp.json()
                except ValueError:
                    return None
            except requests.RequestException as exc:
                logger.error("Telegram %s error: %s", method, exc)
                if not self.running:
                    return None
                self._sleep_backoff(getattr(exc, "response", None))

    def _get_updates(self, timeout: int = 30) -> List[Dict[str, Any]]:
        """Request new updates from Telegram.

        Args:
            timeout: Long polling timeout in seconds.
        Returns:
            A list of update objects, empty if the call fails.
        """
        params = {
            "timeout": timeout,
            "offset": self.last_update_id + 1,
            "allowed_updates": '["message"]',
        }
        data = self._telegram_request("get", "getUpdates", params=params, timeout=timeout + 5)
        if isinstance(data, dict) and data.get("ok"):
            return data.get("result", [])
        if data:
            logger.error("Telegram getUpdates failed: %s", data)
        return []

    def _send_message(
        self,
        chat_id: int,
        text: str,
        *,
        reply_markup: Optional[Dict[str, Any]] = None,
    ) -> None:
        payload: Dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
        }
        if reply_markup:
            payload["reply_markup"] = reply_markup
        data = self._telegram_request("post", "sendMessage", payload=payload)
        if data and not data.get("ok"):
            logger.error("Telegram sendMessage failed: %s", data)

    def set_commands(self) -> None:
        """Publish the command list shown behind the "/" button."""
        data = self._telegram_request("post", "setMyCommands", payload={"commands": BOT_COMMANDS})
        if data and not data.get("ok"):
            logger.error("Telegram setMyCommands failed: %s", data)

    # ------------------------------------------------------------------
    # Command handlers
    # ------------------------------------------------------------------
    def _handle_start(self, chat_id: int) -> None:
        """Greet the user and offer the button that opens the board."""
        inline_keyboard = [[{
            "text": OPEN_BOARD_BUTTON,
            "url": self.web_app_url,
        }]]
        self._send_message(chat_id, GREETING_TEXT, reply_markup={"inline_keyboard": inline_keyboard})

    def _dispatch_update(self, update: Dict[str, Any]) -> None:
        """Process a single update from Telegram."""
        update_id = update.get("update_id")
        if isinstance(update_id, int) and update_id > self.last_update_id:
            self.last_update_id = update_id
        message = update.get("message")
        if not message:
            return
        chat_id = (message.get("chat") or {}).get("id")
        if chat_id is None:
            return
        if (message.get("from") or {}).get("is_bot"):
            return
        text = message.get("text") or ""
        if not text.startswith("/"):
            return
        # "/start", "/start payload" and "/start@BoardBot" all count
        command = text.split(" ", 1)[0].split("@", 1)[0].lower()
        if command == "/start":
            self._handle_start(chat_id)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def stop(self, signum: Optional[int] = None, frame: Any = None) -> None:
        """Stop polling; usable directly as a signal handler."""
        if signum is not None:
            logger.info("Received %s, stopping bot", signal.Signals(signum).name)
        self.running = False

    def run(self) -> None:
        """Start the bot and process updates until stopped."""
        self.running = True
        signal.signal(signal.SIGINT, self.stop)
        signal.signal(signal.SIGTERM, self.stop)
        self.set_commands()
        logger.info("Telegram bot is up and running")
        while self.running:
            for update in self._get_updates(timeout=30):
                self._dispatch_update(update)
        logger.info("Telegram bot stopped")


def main() -> None:
    load_dotenv()
    try:
        bot = TelegramBoardBot()
    except RuntimeError as exc:
        logger.warning("%s; the Telegram bot will not start.", exc)
        return
    bot.run()


if __name__ == "__main__":
    main()
