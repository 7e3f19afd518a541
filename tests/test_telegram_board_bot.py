"""Tests for the Telegram companion bot with ``requests`` stubbed out."""

from __future__ import annotations

import signal
from typing import Any, Dict, List, Optional

import pytest
import requests

import telegram_board_bot
from telegram_board_bot import BOT_COMMANDS, GREETING_TEXT, TelegramBoardBot

BOARD_URL = "https://example.test/board"


class FakeResponse:
    def __init__(self, data: Optional[Dict[str, Any]] = None, status_code: int = 200) -> None:
        self._data = data if data is not None else {"ok": True, "result": True}
        self.status_code = status_code
        self.headers: Dict[str, str] = {}

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)

    def json(self) -> Dict[str, Any]:
        return self._data


class RecordingTelegram:
    """Stands in for ``requests.request`` and records every call."""

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.updates: List[Dict[str, Any]] = []
        self.on_get_updates = None

    def __call__(self, http_method, url, params=None, json=None, timeout=None):
        method = url.rsplit("/", 1)[1]
        self.calls.append({"http_method": http_method, "method": method, "params": params, "json": json})
        if method == "getUpdates":
            if self.on_get_updates:
                self.on_get_updates()
            updates, self.updates = self.updates, []
            return FakeResponse({"ok": True, "result": updates})
        return FakeResponse()

    def methods(self) -> List[str]:
        return [call["method"] for call in self.calls]


@pytest.fixture
def telegram(monkeypatch: pytest.MonkeyPatch) -> RecordingTelegram:
    fake = RecordingTelegram()
    monkeypatch.setattr(telegram_board_bot.requests, "request", fake)
    return fake


@pytest.fixture
def bot() -> TelegramBoardBot:
    return TelegramBoardBot(bot_token="123:abc", web_app_url=BOARD_URL)


def _message_update(update_id: int, text: str, *, is_bot: bool = False) -> Dict[str, Any]:
    return {
        "update_id": update_id,
        "message": {
            "message_id": 1,
            "chat": {"id": 42, "type": "private"},
            "from": {"id": 7, "is_bot": is_bot, "first_name": "Coach"},
            "text": text,
        },
    }


def test_start_replies_with_board_button(bot: TelegramBoardBot, telegram: RecordingTelegram) -> None:
    bot._dispatch_update(_message_update(5, "/start"))

    assert telegram.methods() == ["sendMessage"]
    payload = telegram.calls[0]["json"]
    assert payload["chat_id"] == 42
    assert payload["text"] == GREETING_TEXT
    keyboard = payload["reply_markup"]["inline_keyboard"]
    assert len(keyboard) == 1 and len(keyboard[0]) == 1
    assert keyboard[0][0]["url"] == BOARD_URL
    assert bot.last_update_id == 5


@pytest.mark.parametrize("text", ["/start@ComboBoardBot", "/start deep-link", "/START"])
def test_start_variants_are_recognised(bot: TelegramBoardBot, telegram: RecordingTelegram, text: str) -> None:
    bot._dispatch_update(_message_update(1, text))

    assert telegram.methods() == ["sendMessage"]


@pytest.mark.parametrize("text", ["hello", "/help", ""])
def test_other_messages_are_ignored(bot: TelegramBoardBot, telegram: RecordingTelegram, text: str) -> None:
    bot._dispatch_update(_message_update(9, text))

    assert telegram.calls == []
    assert bot.last_update_id == 9


def test_messages_from_bots_are_ignored(bot: TelegramBoardBot, telegram: RecordingTelegram) -> None:
    bot._dispatch_update(_message_update(3, "/start", is_bot=True))

    assert telegram.calls == []


def test_set_commands_registers_start(bot: TelegramBoardBot, telegram: RecordingTelegram) -> None:
    bot.set_commands()

    assert telegram.methods() == ["setMyCommands"]
    assert telegram.calls[0]["json"] == {"commands": BOT_COMMANDS}
    assert [command["command"] for command in BOT_COMMANDS] == ["start"]


def test_default_web_app_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WEB_APP_URL", raising=False)

    assert TelegramBoardBot(bot_token="t").web_app_url == telegram_board_bot.DEFAULT_WEB_APP_URL


def test_missing_token_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BOT_TOKEN", raising=False)

    with pytest.raises(RuntimeError):
        TelegramBoardBot()


def test_main_without_token_exits_quietly(monkeypatch: pytest.MonkeyPatch, telegram: RecordingTelegram) -> None:
    monkeypatch.delenv("BOT_TOKEN", raising=False)
    monkeypatch.setattr(telegram_board_bot, "load_dotenv", lambda: None)

    assert telegram_board_bot.main() is None
    assert telegram.calls == []


def test_run_polls_until_stopped(
    bot: TelegramBoardBot, telegram: RecordingTelegram, monkeypatch: pytest.MonkeyPatch
) -> None:
    handlers: Dict[int, Any] = {}
    monkeypatch.setattr(telegram_board_bot.signal, "signal", lambda signum, handler: handlers.setdefault(signum, handler))
    telegram.updates = [_message_update(11, "/start")]
    telegram.on_get_updates = lambda: bot.stop(signal.SIGTERM)

    bot.run()

    assert telegram.methods() == ["setMyCommands", "getUpdates", "sendMessage"]
    assert telegram.calls[1]["params"]["offset"] == 1
    assert bot.last_update_id == 11
    assert handlers[signal.SIGINT] == bot.stop
    assert handlers[signal.SIGTERM] == bot.stop
    assert bot.running is False


def test_failed_request_is_retried(bot: TelegramBoardBot, monkeypatch: pytest.MonkeyPatch) -> None:
    responses = [requests.ConnectionError("down"), FakeResponse({"ok": True, "result": []})]
    sleeps: List[float] = []

    def flaky_request(*args, **kwargs):
        outcome = responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(telegram_board_bot.requests, "request", flaky_request)
    monkeypatch.setattr(telegram_board_bot.time, "sleep", sleeps.append)
    bot.running = True

    assert bot._get_updates(timeout=1) == []
    assert len(sleeps) == 1
    assert bot.retry_attempts == 0


def test_rate_limit_honours_retry_after(bot: TelegramBoardBot, monkeypatch: pytest.MonkeyPatch) -> None:
    limited = FakeResponse({"ok": False}, status_code=429)
    limited.headers["Retry-After"] = "3"
    responses = [limited, FakeResponse()]
    sleeps: List[float] = []

    monkeypatch.setattr(telegram_board_bot.requests, "request", lambda *a, **kw: responses.pop(0))
    monkeypatch.setattr(telegram_board_bot.time, "sleep", sleeps.append)
    bot.running = True

    bot.set_commands()

    assert sleeps == [3.0]
    assert responses == []
