"""Wire schemas for the intent collaborator (camelCase on the wire)."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import ActionTag, ConversationContext, EntityRef, FunctionCall, ViewContext


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ConversationTurn(_WireModel):
    role: Literal["user", "assistant"]
    content: str


class EntityRefPayload(_WireModel):
    name: str
    id: str | None = None

    @classmethod
    def from_ref(cls, ref: EntityRef | None) -> EntityRefPayload | None:
        if ref is None or not ref.name:
            return None
        return cls(name=ref.name, id=ref.id or None)


class ConversationContextPayload(_WireModel):
    last_mentioned_client: EntityRefPayload | None = None
    last_mentioned_person: EntityRefPayload | None = None
    last_mentioned_user: EntityRefPayload | None = None
    last_action: str | None = None

    @classmethod
    def from_context(cls, context: ConversationContext) -> ConversationContextPayload | None:
        if context.is_empty():
            return None
        return cls(
            last_mentioned_client=EntityRefPayload.from_ref(context.last_mentioned_client),
            last_mentioned_person=EntityRefPayload.from_ref(context.last_mentioned_person),
            last_mentioned_user=EntityRefPayload.from_ref(context.last_mentioned_user),
            last_action=context.last_action.value if context.last_action else None,
        )

    def to_context(self) -> ConversationContext:
        def _ref(payload: EntityRefPayload | None) -> EntityRef | None:
            if payload is None:
                return None
            return EntityRef(name=payload.name, id=payload.id or "")

        return ConversationContext(
            last_mentioned_client=_ref(self.last_mentioned_client),
            last_mentioned_person=_ref(self.last_mentioned_person),
            last_mentioned_user=_ref(self.last_mentioned_user),
            last_action=ActionTag.parse(self.last_action),
        )


class CurrentViewContextPayload(_WireModel):
    client_id: str | None = None
    client_name: str | None = None
    person_id: str | None = None
    person_name: str | None = None

    @classmethod
    def from_view(cls, view: ViewContext | None) -> CurrentViewContextPayload | None:
        if view is None:
            return None
        if view.viewing_person:
            return cls(
                person_id=view.person_id,
                person_name=view.person_name,
                client_id=view.client_id,
                client_name=view.client_name,
            )
        if view.viewing_client:
            return cls(client_id=view.client_id, client_name=view.client_name)
        return None


class IntentRequest(_WireModel):
    message: str
    conversation_history: list[ConversationTurn] = Field(default_factory=list)
    conversation_context: ConversationContextPayload | None = None
    current_view_context: CurrentViewContextPayload | None = None


class FunctionCallPayload(_WireModel):
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)

    def to_call(self) -> FunctionCall | None:
        tag = ActionTag.parse(self.name)
        if tag is None:
            return None
        return FunctionCall(name=tag, arguments=dict(self.arguments))


class IntentResponse(_WireModel):
    type: str = "message"
    function_call: FunctionCallPayload | None = None
    message: str | None = None
    suggestions: list[str] | None = None


__all__ = [
    "ConversationContextPayload",
    "ConversationTurn",
    "CurrentViewContextPayload",
    "EntityRefPayload",
    "FunctionCallPayload",
    "IntentRequest",
    "IntentResponse",
]
