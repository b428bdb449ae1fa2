"""Periodic checking of tracked links and notification of the bot."""

from __future__ import annotations

import abc
import enum
import logging
import math
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

from linktracker.api_types import LinkUpdate
from linktracker.domain import (
    GITHUB_TYPE,
    STACKOVERFLOW_TYPE,
    Activity,
    ActivityType,
    ChatLinkRepository,
    Link,
)
from linktracker.log import new_discard_logger

DEFAULT_JOB_INTERVAL = 15.0
PAGINATION_LIMIT = 50
TASK_TIMEOUT = 20.0


class StackOverflowActivityKind(str, enum.Enum):
    """Kind of event on a Stack Overflow question."""

    ANSWER = "answer"
    QUESTION = "question"
    COMMENT = "comment"


class GitHubActivityKind(str, enum.Enum):
    """Kind of event on a GitHub repository."""

    ISSUE = "issue"
    PULL_REQUEST = "pull_request"
    REPOSITORY = "repository"


@dataclass
class Question:
    """A Stack Overflow question; dates are Unix seconds."""

    question_id: int = 0
    title: str = ""
    link: str = ""
    last_activity_date: int = 0


@dataclass
class StackOverflowActivity:
    """A new answer, comment or question edit on Stack Overflow."""

    type: StackOverflowActivityKind
    body: str = ""
    user_name: str = ""
    created_at: int = 0
    tags: list[str] = field(default_factory=list)


@dataclass
class GitHubRepository:
    """A GitHub repository as seen by the fetcher."""

    owner: str = ""
    name: str = ""
    updated_at: datetime = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class GitHubActivity:
    """A new issue, pull request or repository event on GitHub."""

    type: GitHubActivityKind
    title: str = ""
    body: str = ""
    user_name: str = ""
    created_at: datetime = datetime.min.replace(tzinfo=timezone.utc)


class StackOverflowFetcher(abc.ABC):
    """Source of Stack Overflow questions and their activity."""

    @abc.abstractmethod
    def get_question(self, url: str) -> Question:
        """The question a link points to."""

    @abc.abstractmethod
    def get_activity(self, question: Question, last_check: datetime) -> list[StackOverflowActivity]:
        """Activity on the question since ``last_check``."""


class GitHubFetcher(abc.ABC):
    """Source of GitHub repositories and their activity."""

    @abc.abstractmethod
    def get_repo(self, url: str) -> GitHubRepository:
        """The repository a link points to."""

    @abc.abstractmethod
    def get_activity(self, repository: GitHubRepository, last_check: datetime) -> list[GitHubActivity]:
        """Activity in the repository since ``last_check``."""


class UpdateSink(Protocol):
    """Anything that accepts link updates, such as the bot client."""

    def post_updates(self, update: LinkUpdate) -> None: ...


_STACKOVERFLOW_KINDS = {
    StackOverflowActivityKind.ANSWER: ActivityType.STACKOVERFLOW_ANSWER,
    StackOverflowActivityKind.QUESTION: ActivityType.STACKOVERFLOW_QUESTION,
    StackOverflowActivityKind.COMMENT: ActivityType.STACKOVERFLOW_COMMENT,
}

_GITHUB_KINDS = {
    GitHubActivityKind.ISSUE: ActivityType.GITHUB_ISSUE,
    GitHubActivityKind.PULL_REQUEST: ActivityType.GITHUB_PULL_REQUEST,
    GitHubActivityKind.REPOSITORY: ActivityType.GITHUB_PULL_REQUEST,
}


def _unix(moment: datetime) -> int:
    return math.floor(moment.timestamp())


class Scrapper:
    """Checks every tracked link at a fixed interval and reports new activity."""

    def __init__(
        self,
        repository: ChatLinkRepository,
        stackoverflow_client: StackOverflowFetcher,
        github_client: GitHubFetcher,
        bot_client: UpdateSink,
        logger: logging.Logger | None = None,
    ) -> None:
        self.repository = repository
        self.stackoverflow_client = stackoverflow_client
        self.github_client = github_client
        self.bot_client = bot_client
        self.logger = logger if logger is not None else new_discard_logger()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def run(self, interval: float = DEFAULT_JOB_INTERVAL) -> None:
        """Start checking links every ``interval`` seconds in the background."""
        if self._thread is not None:
            raise RuntimeError("scrapper is already running")
        self.logger.info("Starting scrapper", extra={"interval": interval})
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop, args=(interval,), name="scrapper", daemon=True
        )
        self._thread.start()
        self.logger.info("Scrapper started")

    def stop(self) -> None:
        """Stop the background checks, waiting for a running one to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self.logger.info("Scheduler stopped")

    def _loop(self, interval: float) -> None:
        while not self._stop_event.wait(interval):
            try:
                self.scrape_links()
            except Exception as exc:
                self.logger.error("Scrape task failed", extra={"error": str(exc)})

    def scrape_links(self) -> None:
        """Check all tracked links once, page by page."""
        self.logger.info("Starting scrape task")
        deadline = time.monotonic() + TASK_TIMEOUT
        offset = 0
        workers = (os.cpu_count() or 1) * 4

        with ThreadPoolExecutor(max_workers=workers) as pool:
            while True:
                if time.monotonic() >= deadline:
                    self.logger.info("Deadline reached, stopping scrape task")
                    return
                try:
                    links = self.repository.links_page(offset, PAGINATION_LIMIT)
                except Exception as exc:
                    self.logger.error(
                        "Error getting links for pagination", extra={"error": str(exc)}
                    )
                    return

                pool.submit(self._process_batch, links, deadline)

                if len(links) < PAGINATION_LIMIT:
                    self.logger.info("No more links to process, stopping scrape task")
                    return
                offset += PAGINATION_LIMIT

    def _process_batch(self, links: list[Link], deadline: float) -> None:
        for link in links:
            if time.monotonic() >= deadline:
                self.logger.warning("Deadline reached before processing link")
                return
            try:
                self.process_link(link)
            except Exception as exc:
                self.logger.error(
                    "Error processing link", extra={"url": link.url, "error": str(exc)}
                )
                return

    def process_link(self, link: Link) -> None:
        """Check one link, notify the bot of new activity and record the check."""
        activities = self._get_activity(link)
        if not activities:
            self.logger.info("No new activities found for link", extra={"url": link.url})
            return

        self._notify_bot(activities, link)
        self.repository.update_last_check(link)
        self.logger.info("Successfully processed link", extra={"url": link.url})

    def _get_activity(self, link: Link) -> list[Activity]:
        self.logger.info("Checking link for update", extra={"url": link.url})
        if link.type == STACKOVERFLOW_TYPE:
            return self._stackoverflow_activity(link)
        if link.type == GITHUB_TYPE:
            return self._github_activity(link)
        self.logger.error("Unknown link type", extra={"type": link.type})
        raise ValueError(f"unknown link type: {link.type}")

    def _stackoverflow_activity(self, link: Link) -> list[Activity]:
        question = self.stackoverflow_client.get_question(link.url)
        if question.last_activity_date <= _unix(link.last_check):
            return []

        activities = []
        for item in self.stackoverflow_client.get_activity(question, link.last_check):
            kind = _STACKOVERFLOW_KINDS.get(item.type)
            if kind is None:
                self.logger.error("Unknown activity type", extra={"type": str(item.type)})
                raise ValueError(f"unknown activity type: {item.type}")
            activities.append(
                Activity(
                    type=kind,
                    title="",
                    created_at=datetime.fromtimestamp(item.created_at, timezone.utc),
                    body=item.body,
                    user_name=item.user_name,
                )
            )
        return activities

    def _github_activity(self, link: Link) -> list[Activity]:
        repo = self.github_client.get_repo(link.url)
        if not repo.updated_at > link.last_check:
            return []

        activities = []
        for item in self.github_client.get_activity(repo, link.last_check):
            kind = _GITHUB_KINDS.get(item.type)
            if kind is None:
                self.logger.error("Unknown activity type", extra={"type": str(item.type)})
                raise ValueError(f"unknown activity type: {item.type}")
            activities.append(
                Activity(
                    type=kind,
                    title=item.title,
                    created_at=item.created_at,
                    body=item.body,
                    user_name=item.user_name,
                )
            )
        return activities

    def _notify_bot(self, activities: list[Activity], link: Link) -> None:
        self.logger.info("Notifying bot for link", extra={"url": link.url})
        chat_ids = self.repository.chat_ids_by_link(link)
        if not chat_ids:
            self.logger.warning("No chat IDs found for link", extra={"url": link.url})
            return

        for activity in activities:
            update_type = activity.to_update_type()
            if update_type is None:
                raise ValueError(f"invalid activity type: {activity.type}")
            update = LinkUpdate(
                tg_chat_ids=list(chat_ids),
                created_at=activity.created_at,
                type=update_type,
                url=link.url,
                user_name=activity.user_name or "Unknown",
                description=activity.body or "No description",
            )
            self.bot_client.post_updates(update)
            self.logger.info(update.description)