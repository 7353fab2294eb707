from __future__ import annotations

import re

from agent_teams.schema import ACTION_PRIORITY, Action, ActionType, ParsedResponse

_WRITE_FILE_RE = re.compile(r"\[WRITE_FILE:([^\]]+)\]([\s\S]*?)\[/WRITE_FILE\]")

_TAG_RES: dict[ActionType, re.Pattern[str]] = {
    t: re.compile(rf"\[{t.value}\]([\s\S]*?)\[/{t.value}\]") for t in ACTION_PRIORITY
}

# Any well-formed [TAG]...[/TAG] or [TAG:arg]...[/TAG] span, known type or not.
_ANY_TAG_RE = re.compile(r"\[([A-Z_]+)(?::[^\]]+)?\][\s\S]*?\[/\1\]")


def parse_actions(text: str) -> list[Action]:
    """
    Extract actions from a reasoning-engine response.

    Order:
    - every WRITE_FILE occurrence, in document order
    - then one full pass per type in ACTION_PRIORITY order

    Two different tags are therefore reported in priority order, not reading
    order. Unclosed or mismatched tags yield nothing.
    """
    actions: list[Action] = []

    for m in _WRITE_FILE_RE.finditer(text):
        path = m.group(1).strip()
        if not path:
            continue
        actions.append(Action(type=ActionType.WRITE_FILE, path=path, content=m.group(2).strip()))

    for action_type in ACTION_PRIORITY:
        for m in _TAG_RES[action_type].finditer(text):
            actions.append(Action(type=action_type, content=m.group(1).strip()))

    return actions


def extract_message(text: str) -> str:
    """Return ``text`` with every well-formed tag span removed, trimmed."""
    message = text
    # Removing a span can join fragments into a new tag, so strip to a fixed point.
    while True:
        stripped = _ANY_TAG_RE.sub("", message)
        if stripped == message:
            break
        message = stripped
    return message.strip()


def parse_response(text: str) -> ParsedResponse:
    return ParsedResponse(message=extract_message(text), actions=parse_actions(text))
