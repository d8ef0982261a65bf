"""Pydantic schemas for the assistant session APIs."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .models import Message, Notification, ViewContext
from .session import SessionController
from .suggestions import Suggestion


class ViewPayload(BaseModel):
    """Page the user is looking at, as a host route plus display names."""

    path: str | None = None
    client_name: str | None = None
    person_name: str | None = None

    def to_view(self) -> ViewContext:
        return ViewContext.from_path(self.path, client_name=self.client_name, person_name=self.person_name)


class SessionCreate(BaseModel):
    """Request to open a new assistant session."""

    view: ViewPayload | None = None


class MessageCreate(BaseModel):
    """A typed (or dictated) user turn."""

    content: str


class SuggestionApply(BaseModel):
    text: str


class ActionEdit(BaseModel):
    fields: dict[str, Any] = Field(default_factory=dict)


class CandidateSelect(BaseModel):
    candidate_id: str


class FunctionCallView(BaseModel):
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class MessageView(BaseModel):
    id: str
    role: str
    content: str
    timestamp: datetime
    function_call: FunctionCallView | None = None
    suggestions: list[str] = Field(default_factory=list)
    is_loading: bool = False
    action_status: str | None = None

    @classmethod
    def from_message(cls, message: Message, status: str | None = None) -> MessageView:
        call = message.function_call
        return cls(
            id=message.id,
            role=message.role.value,
            content=message.content,
            timestamp=message.timestamp,
            function_call=(
                FunctionCallView(name=call.name.value, arguments=dict(call.arguments)) if call else None
            ),
            suggestions=list(message.suggestions),
            is_loading=message.is_loading,
            action_status=status,
        )


class NotificationView(BaseModel):
    title: str
    description: str = ""
    variant: str = "default"

    @classmethod
    def from_notification(cls, notification: Notification) -> NotificationView:
        return cls(
            title=notification.title,
            description=notification.description,
            variant=notification.variant,
        )


class SuggestionView(BaseModel):
    text: str
    submits: bool

    @classmethod
    def from_suggestion(cls, suggestion: Suggestion) -> SuggestionView:
        return cls(text=suggestion.text, submits=suggestion.submits)


class SessionSnapshot(BaseModel):
    """Everything the panel renders for one session."""

    id: str
    layout: str
    closed: bool = False
    in_flight: bool = False
    input: str = ""
    voice_supported: bool = False
    voice_state: str = "idle"
    live_action_id: str | None = None
    messages: list[MessageView] = Field(default_factory=list)
    actions: dict[str, dict[str, Any]] = Field(default_factory=dict)
    notifications: list[NotificationView] = Field(default_factory=list)
    suggestions: list[SuggestionView] = Field(default_factory=list)
    navigation: list[str] = Field(default_factory=list)
    context: dict[str, Any] | None = None

    @classmethod
    def from_session(cls, session: SessionController) -> SessionSnapshot:
        statuses = session.action_statuses
        context = session.memory.to_payload()
        return cls(
            id=session.id,
            layout=session.layout,
            closed=session.closed,
            in_flight=session.in_flight,
            input=session.input_text,
            voice_supported=session.voice.available,
            voice_state=session.voice.state.value,
            live_action_id=session.live_action_id,
            messages=[
                MessageView.from_message(
                    message, statuses[message.id].value if message.id in statuses else None
                )
                for message in session.messages
            ],
            actions={message_id: card.describe() for message_id, card in session.cards().items()},
            notifications=[NotificationView.from_notification(item) for item in session.notifications],
            suggestions=[SuggestionView.from_suggestion(item) for item in session.suggestions()],
            navigation=list(getattr(session.router, "paths", [])),
            context=context.to_wire() if context is not None else None,
        )


__all__ = [
    "ActionEdit",
    "CandidateSelect",
    "MessageCreate",
    "MessageView",
    "NotificationView",
    "SessionCreate",
    "SessionSnapshot",
    "SuggestionApply",
    "SuggestionView",
    "ViewPayload",
]
