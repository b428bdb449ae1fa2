from linktracker.keyboards import (
    LIST_COMMAND_DESCRIPTION,
    MAIN_KEYBOARD,
    SKIP_KEYBOARD,
    SKIP_OPTION,
    bot_commands,
    remove_keyboard,
    reply_keyboard,
)


def _texts(keyboard):
    return [[button["text"] for button in row] for row in keyboard["keyboard"]]


def test_reply_keyboard_keeps_layout():
    keyboard = reply_keyboard([["a", "b"], ["c"]])
    assert _texts(keyboard) == [["a", "b"], ["c"]]
    assert keyboard["resize_keyboard"] is True


def test_reply_keyboard_accepts_generators():
    keyboard = reply_keyboard(iter([iter(["x"])]))
    assert _texts(keyboard) == [["x"]]


def test_main_keyboard_layout():
    built = reply_keyboard([["/track", "/list"], ["/help", "/untrack"]])
    assert built == MAIN_KEYBOARD
    assert _texts(built) == [["/track", "/list"], ["/help", "/untrack"]]


def test_skip_keyboard_holds_skip_option():
    built = reply_keyboard([["Skip"]])
    assert built == SKIP_KEYBOARD
    assert _texts(built) == [[SKIP_OPTION]]


def test_remove_keyboard_markup():
    markup = remove_keyboard()
    assert markup["remove_keyboard"] is True
    assert markup["selective"] is True


def test_bot_commands_order_and_descriptions():
    commands = bot_commands()
    assert [c["command"] for c in commands] == ["start", "help", "track", "untrack", "list"]
    assert commands[0]["description"] == "Start command"
    assert commands[-1]["description"] == LIST_COMMAND_DESCRIPTION


def test_bot_commands_returns_fresh_list():
    first = bot_commands()
    first.clear()
    assert len(bot_commands()) == 5