"""Domain models for assistant conversations."""

from __future__ import annotations

import datetime as dt
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import uuid4

WELCOME_MESSAGE_ID = "welcome"
LOADING_MESSAGE_ID = "loading"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def new_message_id() -> str:
    return uuid4().hex


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ActionTag(str, Enum):
    """Closed set of actions the assistant can propose."""

    CREATE_REMINDER = "create_reminder"
    CREATE_TASK = "create_task"
    SEND_EMAIL = "send_email"
    SEND_SMS = "send_sms"
    NAVIGATE_TO_CLIENT = "navigate_to_client"
    NAVIGATE_TO_PERSON = "navigate_to_person"
    SEARCH_CLIENTS = "search_clients"
    SHOW_TASKS = "show_tasks"
    SHOW_REMINDERS = "show_reminders"
    GET_PROJECT_STATUS = "get_project_status"
    BENCH_PROJECT = "bench_project"
    UNBENCH_PROJECT = "unbench_project"
    MOVE_PROJECT_STAGE = "move_project_stage"
    GET_ANALYTICS = "get_analytics"

    @classmethod
    def parse(cls, value: str | None) -> ActionTag | None:
        """Return the tag for ``value`` or ``None`` when it is not a known action."""

        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class ActionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    DISMISSED = "dismissed"

    @property
    def terminal(self) -> bool:
        return self is not ActionStatus.PENDING


class EntityKind(str, Enum):
    CLIENT = "client"
    USER = "user"
    PERSON = "person"
    TASK_TYPE = "task_type"
    PROJECT = "project"


@dataclass(frozen=True)
class FunctionCall:
    name: ActionTag
    arguments: Mapping[str, Any] = field(default_factory=dict)

    def arg(self, key: str) -> str | None:
        """Return a trimmed string argument, treating blanks as missing."""

        value = self.arguments.get(key)
        if value is None:
            return None
        text = str(value).strip()
        return text or None


@dataclass(frozen=True)
class Message:
    id: str
    role: Role
    content: str
    timestamp: dt.datetime = field(default_factory=_utcnow)
    function_call: FunctionCall | None = None
    suggestions: tuple[str, ...] = ()
    is_loading: bool = False

    @property
    def is_transcript_turn(self) -> bool:
        """Whether the message is part of the history sent to the intent backend."""

        return not self.is_loading and self.id != WELCOME_MESSAGE_ID


@dataclass(frozen=True)
class EntityRef:
    name: str
    id: str = ""


@dataclass(frozen=True)
class ConversationContext:
    last_mentioned_client: EntityRef | None = None
    last_mentioned_person: EntityRef | None = None
    last_mentioned_user: EntityRef | None = None
    last_action: ActionTag | None = None

    def is_empty(self) -> bool:
        return (
            self.last_mentioned_client is None
            and self.last_mentioned_person is None
            and self.last_mentioned_user is None
            and self.last_action is None
        )


@dataclass(frozen=True)
class ViewContext:
    """What the host application is currently showing."""

    page: str | None = None
    client_id: str | None = None
    client_name: str | None = None
    person_id: str | None = None
    person_name: str | None = None

    @classmethod
    def from_path(
        cls,
        path: str | None,
        *,
        client_name: str | None = None,
        person_name: str | None = None,
    ) -> ViewContext:
        """Derive the view from a route such as ``/clients/42`` or ``/internal-tasks?tab=reminders``."""

        if not path:
            return cls()
        route, _, query = path.partition("?")
        segments = [segment for segment in route.strip("/").split("/") if segment]
        if not segments:
            return cls(page="home")
        head = segments[0]
        if head == "clients":
            if len(segments) > 1:
                return cls(page="client", client_id=segments[1], client_name=client_name)
            return cls(page="clients")
        if head == "people":
            if len(segments) > 1:
                return cls(
                    page="person",
                    person_id=segments[1],
                    person_name=person_name,
                    client_name=client_name,
                )
            return cls(page="people")
        if head == "internal-tasks":
            return cls(page="reminders" if "tab=reminders" in query else "tasks")
        return cls(page=head)

    @property
    def viewing_client(self) -> bool:
        return self.page == "client" and bool(self.client_name)

    @property
    def viewing_person(self) -> bool:
        return self.page == "person" and bool(self.person_name)


@dataclass(frozen=True)
class Notification:
    title: str
    description: str = ""
    variant: str = "default"

    @property
    def destructive(self) -> bool:
        return self.variant == "destructive"


__all__ = [
    "ActionStatus",
    "ActionTag",
    "ConversationContext",
    "EntityKind",
    "EntityRef",
    "FunctionCall",
    "LOADING_MESSAGE_ID",
    "Message",
    "Notification",
    "Role",
    "ViewContext",
    "WELCOME_MESSAGE_ID",
    "new_message_id",
]
