"""HTTP client the bot uses to talk to the scrapper."""

from __future__ import annotations

import logging

import httpx

from linktracker.api_types import (
    AddLinkRequest,
    ApiErrorResponse,
    ListLinksResponse,
    RemoveLinkRequest,
)
from linktracker.errors import ErrorResponse
from linktracker.log import new_discard_logger

_JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}
_API_ERROR_CODES = frozenset({400, 401, 404})


class ScrapperClient:
    """Client of the scrapper's chat and link endpoints.

    Failed requests raise ConnectionError; answers other than 200 raise
    ErrorResponse carrying the status code and the scrapper's description.
    """

    def __init__(self, base_url: str, logger: logging.Logger | None = None) -> None:
        self.base_url = base_url
        self.logger = logger if logger is not None else new_discard_logger()
        self._http = httpx.Client()

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> ScrapperClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def register_chat(self, chat_id: int) -> None:
        """Register a chat with the scrapper."""
        url = f"{self.base_url}/tg-chat/{chat_id}"
        self.logger.info("Posting TgChatID", extra={"url": url, "chat_id": chat_id})
        response = self._send("POST", url)
        self._check(response)

    def delete_chat(self, chat_id: int) -> None:
        """Remove a chat from the scrapper."""
        url = f"{self.base_url}/tg-chat/{chat_id}"
        self.logger.info("Deleting TgChatID", extra={"url": url, "chat_id": chat_id})
        response = self._send("DELETE", url)
        self._check(response)

    def add_link(self, chat_id: int, request: AddLinkRequest) -> None:
        """Ask the scrapper to track a link for a chat."""
        url = f"{self.base_url}/links"
        self.logger.info(
            "Posting Links",
            extra={"url": url, "chat_id": chat_id, "link": request.to_dict()},
        )
        response = self._send("POST", url, chat_id=chat_id, body=request.to_dict())
        self._check(response)

    def remove_link(self, chat_id: int, request: RemoveLinkRequest) -> None:
        """Ask the scrapper to stop tracking a link for a chat."""
        url = f"{self.base_url}/links"
        self.logger.info(
            "Deleting Links",
            extra={"url": url, "chat_id": chat_id, "link": request.to_dict()},
        )
        response = self._send("DELETE", url, chat_id=chat_id, body=request.to_dict())
        self._check(response)

    def list_links(self, chat_id: int, tag: str | None = None) -> ListLinksResponse:
        """The links a chat tracks, only those carrying ``tag`` if it is given."""
        url = f"{self.base_url}/links"
        self.logger.info("Getting Links", extra={"url": url, "chat_id": chat_id})
        params = {"tag": tag} if tag else None
        response = self._send("GET", url, chat_id=chat_id, params=params)
        self._check(response)
        try:
            return ListLinksResponse.from_dict(response.json())
        except (ValueError, TypeError, AttributeError) as exc:
            raise ValueError(f"failed to unmarshal response: {exc}") from exc

    def _send(
        self,
        method: str,
        url: str,
        *,
        chat_id: int | None = None,
        body: dict | None = None,
        params: dict | None = None,
    ) -> httpx.Response:
        headers = dict(_JSON_HEADERS)
        if chat_id is not None:
            headers["Tg-Chat-Id"] = str(chat_id)
        try:
            return self._http.request(method, url, headers=headers, json=body, params=params)
        except httpx.HTTPError as exc:
            self.logger.error("Failed to do request", extra={"error": str(exc)})
            raise ConnectionError(f"failed to do request: {exc}") from exc

    def _check(self, response: httpx.Response) -> None:
        code = response.status_code
        if code == 200:
            self.logger.info("Request successful")
            return

        if code in _API_ERROR_CODES:
            try:
                api_error = ApiErrorResponse.from_dict(response.json())
            except (ValueError, TypeError, AttributeError) as exc:
                self.logger.error("Failed to decode error response", extra={"error": str(exc)})
                raise ErrorResponse(code, "failed to decode error response") from exc
            description = api_error.description or ""
            self.logger.warning(
                "API error response", extra={"code": code, "description": description}
            )
            raise ErrorResponse(code, description)

        self.logger.error("Unexpected error", extra={"code": code})
        raise ErrorResponse(code, "unexpected error")