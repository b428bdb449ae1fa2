"""Conversion of API requests into domain objects."""

from __future__ import annotations

from datetime import datetime, timezone

from linktracker.api_types import AddLinkRequest
from linktracker.domain import GITHUB_TYPE, STACKOVERFLOW_TYPE, Link
from linktracker.errors import LinkTypeError, LinkValidateError


def map_add_link_request(chat_id: int, request: AddLinkRequest) -> Link:
    """Build the link a chat asked to track.

    Raises LinkValidateError when the link is missing and LinkTypeError
    when it is neither a Stack Overflow nor a GitHub link.
    """
    if not request.link:
        raise LinkValidateError("link is required")

    if request.link.startswith("https://stackoverflow.com"):
        link_type = STACKOVERFLOW_TYPE
    elif request.link.startswith("https://github.com"):
        link_type = GITHUB_TYPE
    else:
        raise LinkTypeError("unsupported link type")

    return Link(
        user_add_id=chat_id,
        url=request.link,
        type=link_type,
        tags=list(request.tags or []),
        filters=list(request.filters or []),
        last_check=datetime.now(timezone.utc),
    )