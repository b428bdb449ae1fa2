"""Bot commands and reply keyboards."""

from __future__ import annotations

from typing import Any, Iterable

START_COMMAND = "start"
START_COMMAND_DESCRIPTION = "Start command"

HELP_COMMAND = "help"
HELP_COMMAND_DESCRIPTION = "List available commands"

TRACK_COMMAND = "track"
TRACK_COMMAND_DESCRIPTION = "Start tracking a link"

UNTRACK_COMMAND = "untrack"
UNTRACK_COMMAND_DESCRIPTION = "Stop tracking a link"

LIST_COMMAND = "list"
LIST_COMMAND_DESCRIPTION = (
    "Show list of tracked links.\nYou can also use /list <tag> to filter by tag"
)

SKIP_OPTION = "Skip"

_COMMANDS = (
    (START_COMMAND, START_COMMAND_DESCRIPTION),
    (HELP_COMMAND, HELP_COMMAND_DESCRIPTION),
    (TRACK_COMMAND, TRACK_COMMAND_DESCRIPTION),
    (UNTRACK_COMMAND, UNTRACK_COMMAND_DESCRIPTION),
    (LIST_COMMAND, LIST_COMMAND_DESCRIPTION),
)


def reply_keyboard(rows: Iterable[Iterable[str]]) -> dict[str, Any]:
    """A resizable reply keyboard with one button per given text."""
    return {
        "keyboard": [[{"text": text} for text in row] for row in rows],
        "resize_keyboard": True,
    }


def remove_keyboard() -> dict[str, Any]:
    """Markup that hides the reply keyboard."""
    return {"remove_keyboard": True, "selective": True}


def bot_commands() -> list[dict[str, str]]:
    """The commands the bot announces, in menu order."""
    return [{"command": command, "description": description} for command, description in _COMMANDS]


MAIN_KEYBOARD = reply_keyboard(
    [
        ["/" + TRACK_COMMAND, "/" + LIST_COMMAND],
        ["/" + HELP_COMMAND, "/" + UNTRACK_COMMAND],
    ]
)

SKIP_KEYBOARD = reply_keyboard([[SKIP_OPTION]])