"""Wire types of the bot and scrapper HTTP APIs."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping


class LinkUpdateType(str, enum.Enum):
    """Kind of activity that a link update reports."""

    STACKOVERFLOW_COMMENT = "stackoverflow_comment"
    STACKOVERFLOW_ANSWER = "stackoverflow_answer"
    STACKOVERFLOW_QUESTION = "stackoverflow_question"
    GITHUB_REPOSITORY = "github_repository"
    GITHUB_ISSUE = "github_issue"
    GITHUB_PULL_REQUEST = "github_pull_request"


def _drop_none(values: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def _optional_list(value: Any) -> list | None:
    return None if value is None else list(value)


def _format_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    text = value.isoformat()
    return text[:-6] + "Z" if text.endswith("+00:00") else text


def _parse_time(value: str | None) -> datetime | None:
    if value is None:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass
class LinkUpdate:
    """An update about a tracked link sent from the scrapper to the bot."""

    id: int | None = None
    url: str | None = None
    description: str | None = None
    tg_chat_ids: list[int] | None = None
    created_at: datetime | None = None
    type: LinkUpdateType | None = None
    user_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "url": self.url,
                "description": self.description,
                "tgChatIds": _optional_list(self.tg_chat_ids),
                "createdAt": _format_time(self.created_at),
                "type": None if self.type is None else self.type.value,
                "userName": self.user_name,
            }
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LinkUpdate:
        kind = data.get("type")
        return cls(
            id=data.get("id"),
            url=data.get("url"),
            description=data.get("description"),
            tg_chat_ids=_optional_list(data.get("tgChatIds")),
            created_at=_parse_time(data.get("createdAt")),
            type=None if kind is None else LinkUpdateType(kind),
            user_name=data.get("userName"),
        )


@dataclass
class AddLinkRequest:
    """Request to start tracking a link."""

    link: str | None = None
    tags: list[str] | None = None
    filters: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "link": self.link,
                "tags": _optional_list(self.tags),
                "filters": _optional_list(self.filters),
            }
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AddLinkRequest:
        return cls(
            link=data.get("link"),
            tags=_optional_list(data.get("tags")),
            filters=_optional_list(data.get("filters")),
        )


@dataclass
class RemoveLinkRequest:
    """Request to stop tracking a link."""

    link: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none({"link": self.link})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RemoveLinkRequest:
        return cls(link=data.get("link"))


@dataclass
class LinkResponse:
    """One tracked link as returned by the scrapper."""

    id: int | None = None
    url: str | None = None
    tags: list[str] | None = None
    filters: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "url": self.url,
                "tags": _optional_list(self.tags),
                "filters": _optional_list(self.filters),
            }
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LinkResponse:
        return cls(
            id=data.get("id"),
            url=data.get("url"),
            tags=_optional_list(data.get("tags")),
            filters=_optional_list(data.get("filters")),
        )


@dataclass
class ListLinksResponse:
    """The list of links a chat tracks."""

    links: list[LinkResponse] | None = None
    size: int | None = None

    def to_dict(self) -> dict[str, Any]:
        links = None if self.links is None else [link.to_dict() for link in self.links]
        return _drop_none({"links": links, "size": self.size})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ListLinksResponse:
        links = data.get("links")
        return cls(
            links=None if links is None else [LinkResponse.from_dict(item) for item in links],
            size=data.get("size"),
        )


@dataclass
class ApiErrorResponse:
    """Error body returned by both APIs."""

    description: str | None = None
    code: str | None = None
    exception_name: str | None = None
    exception_message: str | None = None
    stacktrace: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "description": self.description,
                "code": self.code,
                "exceptionName": self.exception_name,
                "exceptionMessage": self.exception_message,
                "stacktrace": _optional_list(self.stacktrace),
            }
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ApiErrorResponse:
        return cls(
            description=data.get("description"),
            code=data.get("code"),
            exception_name=data.get("exceptionName"),
            exception_message=data.get("exceptionMessage"),
            stacktrace=_optional_list(data.get("stacktrace")),
        )