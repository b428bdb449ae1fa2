"""Domain model: links, activities and the repository contract."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone

from linktracker.api_types import LinkUpdateType

STACKOVERFLOW_TYPE = "stackoverflow"
GITHUB_TYPE = "github"

ZERO_TIME = datetime.min.replace(tzinfo=timezone.utc)


class ActivityType(str, enum.Enum):
    """Kind of activity found on a tracked page."""

    STACKOVERFLOW_COMMENT = "stackoverflow_comment"
    STACKOVERFLOW_ANSWER = "stackoverflow_answer"
    STACKOVERFLOW_QUESTION = "stackoverflow_question"
    GITHUB_REPOSITORY = "github_repository"
    GITHUB_ISSUE = "github_issue"
    GITHUB_PULL_REQUEST = "github_pull_request"


_UPDATE_TYPES = {
    ActivityType.STACKOVERFLOW_COMMENT: LinkUpdateType.STACKOVERFLOW_COMMENT,
    ActivityType.STACKOVERFLOW_ANSWER: LinkUpdateType.STACKOVERFLOW_ANSWER,
    ActivityType.STACKOVERFLOW_QUESTION: LinkUpdateType.STACKOVERFLOW_QUESTION,
    ActivityType.GITHUB_REPOSITORY: LinkUpdateType.GITHUB_REPOSITORY,
    ActivityType.GITHUB_ISSUE: LinkUpdateType.GITHUB_ISSUE,
    ActivityType.GITHUB_PULL_REQUEST: LinkUpdateType.GITHUB_PULL_REQUEST,
}


@dataclass
class Activity:
    """A new event on a tracked page."""

    type: ActivityType
    title: str
    created_at: datetime
    body: str = ""
    user_name: str = ""

    def to_update_type(self) -> LinkUpdateType | None:
        """The bot API type for this activity, or None if it has none."""
        return _UPDATE_TYPES.get(self.type)


@dataclass
class Link:
    """A link tracked by a chat."""

    user_add_id: int = 0
    url: str = ""
    type: str = ""
    tags: list[str] = field(default_factory=list)
    filters: list[str] = field(default_factory=list)
    last_check: datetime = ZERO_TIME


class RepositoryType(str, enum.Enum):
    """Storage back end for chats and links."""

    SQL = "sql"
    ORM = "orm"


class ChatLinkRepository(abc.ABC):
    """Storage of chats and the links they track."""

    @abc.abstractmethod
    def register_chat(self, chat_id: int) -> None:
        """Register a chat."""

    @abc.abstractmethod
    def delete_chat(self, chat_id: int) -> None:
        """Remove a chat and its links."""

    @abc.abstractmethod
    def save_link(self, chat_id: int, link: Link) -> None:
        """Start tracking a link for a chat."""

    @abc.abstractmethod
    def delete_link(self, chat_id: int, link: Link) -> None:
        """Stop tracking a link for a chat."""

    @abc.abstractmethod
    def list_links(self, chat_id: int) -> list[Link]:
        """All links the chat tracks."""

    @abc.abstractmethod
    def user_exists(self, chat_id: int) -> bool:
        """Whether the chat is registered."""

    @abc.abstractmethod
    def chat_ids_by_link(self, link: Link) -> list[int]:
        """Ids of the chats that track the link."""

    @abc.abstractmethod
    def update_last_check(self, link: Link) -> None:
        """Record that the link has just been checked."""

    @abc.abstractmethod
    def links_by_tag(self, chat_id: int, tag: str) -> list[Link]:
        """Links of the chat that carry the tag."""

    @abc.abstractmethod
    def links_page(self, offset: int, limit: int) -> list[Link]:
        """At most ``limit`` tracked links, starting at ``offset``."""