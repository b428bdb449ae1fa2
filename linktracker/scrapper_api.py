"""Request handling of the scrapper's chat and link API."""

from __future__ import annotations

import abc
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, TypeVar

from linktracker.api_types import (
    AddLinkRequest,
    ApiErrorResponse,
    LinkResponse,
    ListLinksResponse,
    RemoveLinkRequest,
)
from linktracker.domain import ChatLinkRepository, Link
from linktracker.errors import LinkIsNotExistError, LinkTypeError, LinkValidateError
from linktracker.log import new_discard_logger
from linktracker.mapper import map_add_link_request

T = TypeVar("T")

ERR_CHAT_ALREADY_EXIST = "chat_already_exists"
ERR_CHAT_NOT_EXIST = "chat_not_found"
ERR_INTERNAL_ERROR = "internal_error"
ERR_INVALID_REQUEST_BODY = "invalid_request_body"

ERR_DESCRIPTION_CHAT_ALREADY_EXIST = "Chat already exists"
ERR_DESCRIPTION_CHAT_NOT_EXIST = "Chat not found"
ERR_DESCRIPTION_INTERNAL_ERROR = "Internal error"
ERR_DESCRIPTION_INVALID_BODY = "Invalid request body"

ERR_LINK_NOT_EXIST = "link_not_exist"
ERR_LINK_VALIDATION_ERROR = "link_validation_error"
ERR_LINK_TYPE_NOT_SUPPORTED = "link_type_not_supported"

ERR_DESCRIPTION_LINK_NOT_EXIST = "Link not exist"
ERR_DESCRIPTION_LINK_VALIDATION_ERROR = "Link validation error"
ERR_DESCRIPTION_LINK_TYPE_NOT_SUPPORTED = "Link type not supported"


@dataclass(frozen=True)
class ApiResponse:
    """An HTTP status with a JSON-ready body."""

    status: int
    body: Any = None


def success_response(data: Any = None) -> ApiResponse:
    """A 200 answer; objects with ``to_dict`` are converted."""
    body = data.to_dict() if hasattr(data, "to_dict") else data
    return ApiResponse(200, body)


def _error_response(status: int, error: str, description: str) -> ApiResponse:
    body = ApiErrorResponse(
        description=description, code=str(status), exception_message=error
    ).to_dict()
    return ApiResponse(status, body)


def bad_request_response(error: str, description: str) -> ApiResponse:
    return _error_response(400, error, description)


def not_found_response(error: str, description: str) -> ApiResponse:
    return _error_response(404, error, description)


def unauthorized_response(error: str, description: str) -> ApiResponse:
    return _error_response(401, error, description)


class Transactor(abc.ABC):
    """Runs a unit of work inside a storage transaction."""

    @abc.abstractmethod
    def with_transaction(self, func: Callable[[], T]) -> T:
        """Call ``func`` in a transaction, committing unless it raises."""


def _decode_body(
    body: bytes | str | Mapping[str, Any] | None,
    strings: tuple[str, ...] = (),
    string_lists: tuple[str, ...] = (),
) -> Mapping[str, Any]:
    """Parse a JSON object body; raises ValueError when it does not fit."""
    if body is None:
        return {}
    if isinstance(body, Mapping):
        data: Any = body
    else:
        text = body.decode("utf-8") if isinstance(body, (bytes, bytearray)) else body
        if not text.strip():
            return {}
        data = json.loads(text)
    if not isinstance(data, Mapping):
        raise ValueError("request body must be a JSON object")
    for key in strings:
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            raise ValueError(f"field {key!r} must be a string")
    for key in string_lists:
        value = data.get(key)
        if value is not None and (
            not isinstance(value, list) or not all(isinstance(item, str) for item in value)
        ):
            raise ValueError(f"field {key!r} must be a list of strings")
    return data


class ScrapperHandler:
    """Handlers of the scrapper's endpoints; every outcome is an ApiResponse."""

    def __init__(
        self,
        transactor: Transactor | None,
        repository: ChatLinkRepository,
        logger: logging.Logger | None = None,
    ) -> None:
        self.transactor = transactor
        self.repository = repository
        self.logger = logger if logger is not None else new_discard_logger()

    def register_chat(self, chat_id: int) -> ApiResponse:
        """POST /tg-chat/{id}."""
        self.logger.info("Registering chat", extra={"chat_id": chat_id})
        try:
            exists = self.repository.user_exists(chat_id)
        except Exception as exc:
            self.logger.error("Failed to check user existence", extra={"error": str(exc)})
            return bad_request_response(ERR_INTERNAL_ERROR, ERR_DESCRIPTION_INTERNAL_ERROR)

        if exists:
            self.logger.warning("Chat already exists", extra={"chat_id": chat_id})
            return bad_request_response(ERR_CHAT_ALREADY_EXIST, ERR_DESCRIPTION_CHAT_ALREADY_EXIST)

        try:
            self.repository.register_chat(chat_id)
        except Exception as exc:
            self.logger.error("Failed to register chat", extra={"error": str(exc)})
            return bad_request_response(ERR_INTERNAL_ERROR, ERR_DESCRIPTION_INTERNAL_ERROR)

        self.logger.info("Successfully registered chat", extra={"chat_id": chat_id})
        return success_response()

    def delete_chat(self, chat_id: int) -> ApiResponse:
        """DELETE /tg-chat/{id}."""
        self.logger.info("Removing chat", extra={"chat_id": chat_id})
        try:
            exists = self.repository.user_exists(chat_id)
        except Exception as exc:
            self.logger.error("Failed to check user existence", extra={"error": str(exc)})
            return bad_request_response(ERR_INTERNAL_ERROR, ERR_DESCRIPTION_INTERNAL_ERROR)

        if not exists:
            self.logger.warning("Chat does not exist", extra={"chat_id": chat_id})
            return not_found_response(ERR_CHAT_NOT_EXIST, ERR_DESCRIPTION_CHAT_NOT_EXIST)

        try:
            self.repository.delete_chat(chat_id)
        except Exception as exc:
            self.logger.error("Failed to remove chat", extra={"error": str(exc)})
            return bad_request_response(ERR_INTERNAL_ERROR, ERR_DESCRIPTION_INTERNAL_ERROR)

        self.logger.info("Successfully removed chat", extra={"chat_id": chat_id})
        return success_response()

    def add_link(self, chat_id: int, body: bytes | str | Mapping[str, Any] | None) -> ApiResponse:
        """POST /links."""
        self.logger.info("Adding link for chat", extra={"chat_id": chat_id})
        try:
            data = _decode_body(body, strings=("link",), string_lists=("tags", "filters"))
        except ValueError as exc:
            self.logger.warning("Invalid request body", extra={"error": str(exc)})
            return bad_request_response(ERR_INVALID_REQUEST_BODY, ERR_DESCRIPTION_INVALID_BODY)

        try:
            link = map_add_link_request(chat_id, AddLinkRequest.from_dict(data))
        except LinkValidateError as exc:
            self.logger.warning("Link validation error", extra={"error": str(exc)})
            return bad_request_response(ERR_INVALID_REQUEST_BODY, ERR_DESCRIPTION_INVALID_BODY)
        except LinkTypeError as exc:
            self.logger.warning("Link type not supported", extra={"error": str(exc)})
            return bad_request_response(
                ERR_LINK_TYPE_NOT_SUPPORTED, ERR_DESCRIPTION_LINK_TYPE_NOT_SUPPORTED
            )
        except Exception as exc:
            self.logger.error("Internal error", extra={"error": str(exc)})
            return bad_request_response(ERR_INTERNAL_ERROR, ERR_DESCRIPTION_INTERNAL_ERROR)

        try:
            if self.transactor is None:
                raise RuntimeError("no transactor configured")
            self.transactor.with_transaction(lambda: self.repository.save_link(chat_id, link))
        except Exception as exc:
            self.logger.error("Failed to save link for chat", extra={"error": str(exc)})
            return bad_request_response(ERR_INTERNAL_ERROR, ERR_DESCRIPTION_INTERNAL_ERROR)

        self.logger.info("Successfully added link for chat", extra={"chat_id": chat_id})
        return success_response()

    def remove_link(
        self, chat_id: int, body: bytes | str | Mapping[str, Any] | None
    ) -> ApiResponse:
        """DELETE /links."""
        self.logger.info("Removing link for chat", extra={"chat_id": chat_id})
        try:
            request = RemoveLinkRequest.from_dict(_decode_body(body, strings=("link",)))
        except ValueError as exc:
            self.logger.warning("Invalid request body", extra={"error": str(exc)})
            return bad_request_response(ERR_INVALID_REQUEST_BODY, ERR_DESCRIPTION_INVALID_BODY)

        if not request.link:
            self.logger.warning("Link is empty")
            return bad_request_response(ERR_INVALID_REQUEST_BODY, ERR_DESCRIPTION_INVALID_BODY)

        try:
            self.repository.delete_link(chat_id, Link(url=request.link))
        except LinkIsNotExistError as exc:
            self.logger.warning("Link does not exist", extra={"error": str(exc)})
            return not_found_response(ERR_LINK_NOT_EXIST, ERR_DESCRIPTION_LINK_NOT_EXIST)
        except Exception as exc:
            self.logger.error("Failed to remove link for chat", extra={"error": str(exc)})
            return bad_request_response(ERR_INTERNAL_ERROR, ERR_DESCRIPTION_INTERNAL_ERROR)

        self.logger.info("Successfully removed link for chat", extra={"chat_id": chat_id})
        return success_response()

    def list_links(self, chat_id: int, tag: str | None = None) -> ApiResponse:
        """GET /links, optionally only links carrying ``tag``."""
        self.logger.info("Getting links for chat", extra={"chat_id": chat_id})
        try:
            if tag:
                links = self.repository.links_by_tag(chat_id, tag)
            else:
                links = self.repository.list_links(chat_id)
        except Exception as exc:
            self.logger.error("Failed to get links for chat", extra={"error": str(exc)})
            return bad_request_response(ERR_INTERNAL_ERROR, ERR_DESCRIPTION_INTERNAL_ERROR)

        if not links:
            self.logger.info("No links found for chat", extra={"chat_id": chat_id})
            return success_response(ListLinksResponse(links=[], size=0))

        items = [
            LinkResponse(url=link.url, tags=list(link.tags), filters=list(link.filters))
            for link in links
        ]
        self.logger.info("Successfully retrieved links for chat", extra={"chat_id": chat_id})
        return success_response(ListLinksResponse(links=items, size=len(items)))