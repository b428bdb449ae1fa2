"""Per-chat conversation state of the /track dialogue."""

from __future__ import annotations

import enum
import threading
from dataclasses import dataclass, field


class ConversationState(str, enum.Enum):
    """Step of the /track dialogue a chat is at."""

    IDLE = "idle"
    AWAITING_URL = "awaiting_url"
    AWAITING_TAGS = "awaiting_tags"
    AWAITING_FILTER = "awaiting_filter"


class Event(str, enum.Enum):
    """Input that moves a conversation to its next step."""

    START_TRACK = "start_track"
    SET_URL = "set_url"
    SET_TAGS = "set_tags"
    COMPLETE = "complete"


_TRANSITIONS: dict[Event, tuple[ConversationState, ConversationState]] = {
    Event.START_TRACK: (ConversationState.IDLE, ConversationState.AWAITING_URL),
    Event.SET_URL: (ConversationState.AWAITING_URL, ConversationState.AWAITING_TAGS),
    Event.SET_TAGS: (ConversationState.AWAITING_TAGS, ConversationState.AWAITING_FILTER),
    Event.COMPLETE: (ConversationState.AWAITING_FILTER, ConversationState.IDLE),
}


class InvalidTransitionError(Exception):
    """The event cannot happen in the conversation's current state."""

    def __init__(self, event: Event, state: ConversationState) -> None:
        super().__init__(f"event {event.value} inappropriate in current state {state.value}")
        self.event = event
        self.state = state


@dataclass
class Conversation:
    """What a chat has entered so far in the /track dialogue."""

    chat_id: int
    url: str = ""
    tags: list[str] = field(default_factory=list)
    filters: list[str] = field(default_factory=list)
    state: ConversationState = ConversationState.IDLE

    def fire(self, event: Event) -> ConversationState:
        """Apply ``event`` and return the new state.

        Raises InvalidTransitionError when the event does not fit the state.
        """
        source, destination = _TRANSITIONS[Event(event)]
        if self.state is not source:
            raise InvalidTransitionError(Event(event), self.state)
        self.state = destination
        return destination


class StateManager:
    """Thread-safe registry of the conversations of all chats."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._conversations: dict[int, Conversation] = {}

    def get_conversation(self, chat_id: int) -> Conversation:
        """The chat's conversation, started afresh if it has none."""
        with self._lock:
            conversation = self._conversations.get(chat_id)
            if conversation is None:
                conversation = Conversation(chat_id)
                self._conversations[chat_id] = conversation
            return conversation

    def clear_conversation(self, chat_id: int) -> None:
        """Forget the chat's conversation."""
        with self._lock:
            self._conversations.pop(chat_id, None)