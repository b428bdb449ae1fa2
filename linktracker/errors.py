"""Error types shared by the bot, the scrapper and their clients."""

from __future__ import annotations


class _MessageError(Exception):
    """An error that carries a single human-readable message."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class LinkValidateError(_MessageError):
    """The link in a request is missing or malformed."""


class LinkTypeError(_MessageError):
    """The link points to a site that is not supported."""


class ChatIsNotExistError(_MessageError):
    """The chat is not registered."""


class ChatAlreadyExistError(_MessageError):
    """The chat is already registered."""


class LinkIsNotExistError(_MessageError):
    """The link is not tracked by the chat."""


class ErrorResponse(Exception):
    """An error answer from a remote API, with its HTTP status code."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"