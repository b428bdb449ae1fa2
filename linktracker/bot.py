"""Telegram bot that lets chats track links through the scrapper."""

from __future__ import annotations

import logging
import threading
from typing import Any, Mapping

import httpx

from linktracker.api_types import AddLinkRequest, RemoveLinkRequest
from linktracker.config import BotConfig
from linktracker.conversation import ConversationState, Event, InvalidTransitionError, StateManager
from linktracker.errors import ErrorResponse
from linktracker.keyboards import (
    HELP_COMMAND,
    LIST_COMMAND,
    MAIN_KEYBOARD,
    SKIP_KEYBOARD,
    SKIP_OPTION,
    START_COMMAND,
    TRACK_COMMAND,
    UNTRACK_COMMAND,
    bot_commands,
    remove_keyboard,
)
from linktracker.log import new_discard_logger

TELEGRAM_API_BASE = "https://api.telegram.org"
UPDATE_TIMEOUT = 60
RETRY_DELAY = 3.0
INTERNAL_ERROR_TEXT = "⚠️ An internal error occurred"


class TelegramError(Exception):
    """The Telegram Bot API could not be reached or refused a call."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class TelegramAPI:
    """Minimal client of the Telegram Bot API."""

    def __init__(self, token: str, client: httpx.Client | None = None) -> None:
        self._token = token
        self._http = client if client is not None else httpx.Client(timeout=30.0)

    def close(self) -> None:
        self._http.close()

    def _call(self, method: str, payload: Mapping[str, Any], timeout: float | None = None) -> Any:
        url = f"{TELEGRAM_API_BASE}/bot{self._token}/{method}"
        try:
            if timeout is None:
                response = self._http.post(url, json=dict(payload))
            else:
                response = self._http.post(url, json=dict(payload), timeout=timeout)
        except httpx.HTTPError as exc:
            raise TelegramError(f"{method}: {exc}") from exc
        try:
            data = response.json()
        except ValueError as exc:
            raise TelegramError(f"{method}: invalid response", response.status_code) from exc
        if not isinstance(data, dict) or not data.get("ok"):
            description = data.get("description") if isinstance(data, dict) else None
            code = data.get("error_code") if isinstance(data, dict) else None
            raise TelegramError(description or f"{method} failed", code or response.status_code)
        return data.get("result")

    def get_updates(self, offset: int = 0, timeout: int = UPDATE_TIMEOUT) -> list[dict[str, Any]]:
        """Updates with ids from ``offset`` on, long-polling up to ``timeout`` seconds."""
        result = self._call(
            "getUpdates", {"offset": offset, "timeout": timeout}, timeout=timeout + 10
        )
        return list(result or [])

    def send_message(
        self, chat_id: int, text: str, reply_markup: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """Send a text message, optionally with a keyboard."""
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if reply_markup is not None:
            payload["reply_markup"] = dict(reply_markup)
        return self._call("sendMessage", payload)

    def set_my_commands(self, commands: list[Mapping[str, str]]) -> bool:
        """Publish the bot's command menu."""
        return bool(self._call("setMyCommands", {"commands": [dict(c) for c in commands]}))


def help_text() -> str:
    """The answer to /help."""
    lines = ["Available commands:"]
    lines.extend(f"/{c['command']} - {c['description']}" for c in bot_commands())
    return "\n".join(lines)


def _split_command(text: str) -> tuple[str, str]:
    head, _, arguments = text.partition(" ")
    return head[1:].split("@", 1)[0], arguments


def _is_command(message: Mapping[str, Any]) -> bool:
    entities = message.get("entities") or []
    if not entities:
        return False
    first = entities[0]
    return first.get("type") == "bot_command" and first.get("offset") == 0


class Bot:
    """Answers commands and runs the /track dialogue of every chat."""

    def __init__(
        self,
        logger: logging.Logger | None,
        config: BotConfig,
        scrapper_client: Any,
        api: TelegramAPI | None = None,
    ) -> None:
        self.logger = logger if logger is not None else new_discard_logger()
        self.config = config
        self.scrapper_client = scrapper_client
        self.api = api
        self.state_manager = StateManager()

    def run(self, stop_event: threading.Event | None = None) -> None:
        """Poll Telegram for updates and handle them until ``stop_event`` is set."""
        stop = stop_event if stop_event is not None else threading.Event()
        if self.api is None:
            self.api = TelegramAPI(self.config.token)
        try:
            self.api.set_my_commands(bot_commands())
        except TelegramError as exc:
            raise TelegramError(f"setting bot commands: {exc}", exc.code) from exc

        self.logger.info("Bot is running")
        offset = 0
        while not stop.is_set():
            try:
                updates = self.api.get_updates(offset, UPDATE_TIMEOUT)
            except TelegramError as exc:
                self.logger.error("Getting updates", extra={"error": str(exc)})
                stop.wait(RETRY_DELAY)
                continue
            for update in updates:
                offset = max(offset, int(update.get("update_id", 0)) + 1)
                try:
                    self.handle_update(update)
                except Exception as exc:
                    self.logger.error("Handling update", extra={"error": str(exc)})

    def send_message(
        self, chat_id: int, text: str, reply_markup: Mapping[str, Any] | None = None
    ) -> None:
        """Send a message; failures are logged, not raised."""
        try:
            if self.api is None:
                raise TelegramError("bot API is not set up")
            self.api.send_message(chat_id, text, reply_markup)
        except TelegramError as exc:
            self.logger.error(
                "Sending message",
                extra={"chat_id": chat_id, "text": text, "error": str(exc)},
            )
            return
        self.logger.info("Message sent", extra={"chat_id": chat_id, "text": text})

    def handle_update(self, update: Mapping[str, Any]) -> None:
        """Dispatch one Telegram update to the command or message handler."""
        message = update.get("message")
        if not message:
            return
        chat_id = message["chat"]["id"]
        text = message.get("text") or ""
        if _is_command(message):
            self.handle_command(chat_id, text)
        else:
            self.handle_message(chat_id, text)

    def handle_command(self, chat_id: int, text: str) -> None:
        """Handle a message that starts with a bot command."""
        command, arguments = _split_command(text)
        self.logger.info("Received command", extra={"chat_id": chat_id, "command": command})

        if command == START_COMMAND:
            self._handle_start(chat_id)
        elif command == HELP_COMMAND:
            self.send_message(chat_id, help_text(), MAIN_KEYBOARD)
        elif command == TRACK_COMMAND:
            self._start_track(chat_id)
        elif command == UNTRACK_COMMAND:
            self._handle_untrack(chat_id, arguments)
        elif command == LIST_COMMAND:
            self._handle_list(chat_id, arguments)
        else:
            self.send_message(
                chat_id, "Unknown command. Use /help to see the list of available commands."
            )

    def handle_message(self, chat_id: int, text: str) -> None:
        """Handle plain text, which feeds the chat's /track dialogue."""
        self.logger.info("Received message", extra={"chat_id": chat_id, "text": text})
        conv = self.state_manager.get_conversation(chat_id)

        if conv.state is ConversationState.IDLE:
            self.send_message(
                chat_id,
                "Please enter a command to start. Use /help to see the list of available commands.",
            )
            return

        if conv.state is ConversationState.AWAITING_URL:
            if "github.com" not in text and "stackoverflow.com" not in text:
                self.send_message(chat_id, "Invalid link. Please try again:")
                return
            conv.url = text
            try:
                conv.fire(Event.SET_URL)
            except InvalidTransitionError as exc:
                self.logger.error("Error setting URL", extra={"error": str(exc)})
                self.send_message(chat_id, "Error setting URL. Please try again later.")
                return
            self.send_message(chat_id, "Enter tags separated by spaces (optional):", SKIP_KEYBOARD)

        elif conv.state is ConversationState.AWAITING_TAGS:
            if text and text != SKIP_OPTION:
                conv.tags = text.split(" ")
            try:
                conv.fire(Event.SET_TAGS)
            except InvalidTransitionError as exc:
                self.logger.error("Error setting tags", extra={"error": str(exc)})
                self.send_message(chat_id, "Error setting tags. Please try again later.")
                return
            self.send_message(
                chat_id, "Enter filters separated by spaces (optional):", SKIP_KEYBOARD
            )

        elif conv.state is ConversationState.AWAITING_FILTER:
            if text and text != SKIP_OPTION:
                conv.filters = text.split(" ")
            request = AddLinkRequest(
                link=conv.url,
                tags=list(conv.tags) or None,
                filters=list(conv.filters) or None,
            )
            try:
                self.scrapper_client.add_link(chat_id, request)
            except Exception as exc:
                self.logger.error("Error posting links", extra={"error": str(exc)})
                self._handle_error(chat_id, exc)
            else:
                self.send_message(chat_id, "Link successfully added!", MAIN_KEYBOARD)

            try:
                conv.fire(Event.COMPLETE)
            except InvalidTransitionError as exc:
                self.logger.error("Error completing tracking", extra={"error": str(exc)})
                self.send_message(
                    chat_id, "Error completing tracking. Please try again later.", MAIN_KEYBOARD
                )
            self.state_manager.clear_conversation(chat_id)

    def _start_track(self, chat_id: int) -> None:
        conv = self.state_manager.get_conversation(chat_id)
        try:
            conv.fire(Event.START_TRACK)
        except InvalidTransitionError as exc:
            self.logger.error("Error starting tracking", extra={"error": str(exc)})
            self.send_message(chat_id, "Error starting tracking. Please try again later.")
            return
        self.send_message(chat_id, "Enter the link to track:", remove_keyboard())

    def _handle_untrack(self, chat_id: int, link: str) -> None:
        if not link:
            self.send_message(
                chat_id,
                "Specify the link to stop tracking: /untrack <link>",
                remove_keyboard(),
            )
            return
        try:
            self.scrapper_client.remove_link(chat_id, RemoveLinkRequest(link=link))
        except Exception as exc:
            self.logger.error("Error deleting link", extra={"error": str(exc)})
            self._handle_error(chat_id, exc)
        else:
            self.send_message(chat_id, "Link successfully removed from tracking!", MAIN_KEYBOARD)

    def _handle_list(self, chat_id: int, tag: str = "") -> None:
        try:
            links = self.scrapper_client.list_links(chat_id, tag)
        except Exception as exc:
            self.logger.error("Error getting links", extra={"error": str(exc)})
            self._handle_error(chat_id, exc)
            return

        if not links.size:
            self.send_message(chat_id, "No tracked links.")
            return

        lines = ["Tracked links:\n"]
        lines.extend(f"- {link.url}\n" for link in links.links or [])
        self.send_message(chat_id, "".join(lines))

    def _handle_start(self, chat_id: int) -> None:
        try:
            self.scrapper_client.register_chat(chat_id)
        except Exception as exc:
            self.logger.error("Error posting chat ID", extra={"error": str(exc)})
            self._handle_error(chat_id, exc)
            return
        self.send_message(chat_id, "Welcome! Use /help for a list of commands.", MAIN_KEYBOARD)

    def _handle_error(self, chat_id: int, error: Exception) -> None:
        if not isinstance(error, ErrorResponse):
            self.logger.error("Internal error", extra={"error": str(error)})
            self.send_message(chat_id, INTERNAL_ERROR_TEXT)
            return

        if error.code == 400:
            self.logger.error("Bad request error", extra={"error": error.message})
            self.send_message(chat_id, f"❌ Request error: {error.message}")
        elif error.code == 404:
            self.logger.error("Not found error", extra={"error": error.message})
            self.send_message(chat_id, f"🔍 Not found: {error.message}")
        elif error.code == 401:
            self.logger.error("Unauthorized access error", extra={"error": error.message})
            self.send_message(chat_id, f"❌ Unauthorized access: {error.message}")
        else:
            self.logger.error("Unexpected error", extra={"error": error.message})
            self.send_message(chat_id, INTERNAL_ERROR_TEXT)