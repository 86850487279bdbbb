"""Types specific to robot_webhooks."""

from __future__ import annotations

import dataclasses
import re
from typing import Any, Dict, FrozenSet, Optional, Union

from robot_webhooks.errors import InvalidPattern

# A webhook payload as described by a JSON object.
EventDict = Dict[str, Any]

# Owner and repo (and maybe more) keyword arguments for GitHub API calls.
RepoCoords = Dict[str, Any]

# A configuration document parsed from YAML.
ConfigDict = Dict[str, Any]


@dataclasses.dataclass(frozen=True)
class WebhookEvent:
    """An already-verified event delivered by GitHub."""
    name: str
    payload: EventDict
    delivery_id: Optional[str] = None

    @property
    def action(self) -> Optional[str]:
        return self.payload.get("action")

    def __str__(self):
        if self.action:
            return f"{self.name}.{self.action}"
        return self.name


@dataclasses.dataclass(frozen=True)
class AnyEvent:
    """Matches every event: ``*``."""

    def matches(self, event: WebhookEvent) -> bool:
        return True

    def __str__(self):
        return "*"


@dataclasses.dataclass(frozen=True)
class NamedEvent:
    """Matches every action of one event: ``issues``."""
    name: str

    def matches(self, event: WebhookEvent) -> bool:
        return event.name == self.name

    def __str__(self):
        return self.name


@dataclasses.dataclass(frozen=True)
class NamedAction:
    """Matches one action of one event: ``issues.opened``."""
    name: str
    action: str

    def matches(self, event: WebhookEvent) -> bool:
        return event.name == self.name and event.action == self.action

    def __str__(self):
        return f"{self.name}.{self.action}"


Pattern = Union[AnyEvent, NamedEvent, NamedAction]

_PATTERN_PART = re.compile(r"[A-Za-z0-9_-]+")


def parse_pattern(text: Union[str, Pattern]) -> Pattern:
    """
    Turn a registration key into a Pattern.

    ``"*"`` is the wildcard, ``"name"`` matches the event name with any
    action, and ``"name.action"`` matches only that action.
    """
    if isinstance(text, (AnyEvent, NamedEvent, NamedAction)):
        return text
    if text == "*":
        return AnyEvent()
    parts = text.split(".")
    if len(parts) > 2 or not all(_PATTERN_PART.fullmatch(part) for part in parts):
        raise InvalidPattern(f"Not an event pattern: {text!r}")
    if len(parts) == 1:
        return NamedEvent(parts[0])
    return NamedAction(parts[0], parts[1])


def candidate_patterns(event: WebhookEvent) -> FrozenSet[Pattern]:
    """All the patterns that select `event`."""
    patterns: set[Pattern] = {AnyEvent(), NamedEvent(event.name)}
    if event.action:
        patterns.add(NamedAction(event.name, event.action))
    return frozenset(patterns)
