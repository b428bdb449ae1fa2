"""HTTP client the scrapper uses to push link updates to the bot."""

from __future__ import annotations

import logging

import httpx

from linktracker.api_types import ApiErrorResponse, LinkUpdate
from linktracker.log import new_discard_logger

_JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


class BotClientError(Exception):
    """The bot did not accept an update."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BotClient:
    """Client of the bot's update endpoint."""

    def __init__(self, base_url: str, logger: logging.Logger | None = None) -> None:
        self.base_url = base_url
        self.logger = logger if logger is not None else new_discard_logger()
        self._http = httpx.Client()

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> BotClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def post_updates(self, update: LinkUpdate) -> None:
        """Send an update; raises BotClientError unless the bot answers 200."""
        url = f"{self.base_url}/updates"
        self.logger.info("Sending update to URL", extra={"url": url})

        try:
            response = self._http.post(url, json=update.to_dict(), headers=_JSON_HEADERS)
        except httpx.HTTPError as exc:
            self.logger.error("Failed to do request", extra={"error": str(exc)})
            raise BotClientError(f"failed to do request: {exc}") from exc

        status = response.status_code
        self.logger.info("Received response with status code", extra={"status_code": status})

        if status == 200:
            self.logger.info("Update posted successfully")
            return

        if status == 400:
            try:
                api_error = ApiErrorResponse.from_dict(response.json())
            except (ValueError, TypeError, AttributeError) as exc:
                self.logger.error("Failed to decode error response", extra={"error": str(exc)})
                raise BotClientError(f"failed to decode error response: {exc}", status) from exc
            description = api_error.description or ""
            self.logger.error("Bad request", extra={"description": description})
            raise BotClientError(f"bad request: {description}", status)

        self.logger.error("Unexpected status code", extra={"status_code": status})
        raise BotClientError(f"unexpected status code: {status}", status)