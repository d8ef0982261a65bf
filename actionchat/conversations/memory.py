"""Short-term memory of the entities a conversation has mentioned."""

from __future__ import annotations

from dataclasses import replace

from .models import ActionTag, ConversationContext, EntityRef, FunctionCall
from .schemas import ConversationContextPayload

SELF_REFERENCES = frozenset({"me", "myself"})


class ContextMemory:
    """Remembers the last client, person and staff user named in function calls.

    Each resolved call overwrites the fields it mentions; nothing is merged or
    resolved here.  Stored references carry a name only.
    """

    def __init__(self) -> None:
        self._context = ConversationContext()

    @property
    def context(self) -> ConversationContext:
        return self._context

    def update(self, call: FunctionCall) -> ConversationContext:
        context = self._context

        client = call.arg("clientName")
        if call.name is ActionTag.SEARCH_CLIENTS:
            client = call.arg("searchTerm") or client
        if client:
            context = replace(context, last_mentioned_client=EntityRef(name=client))

        person = call.arg("recipientName") or call.arg("personName")
        if person:
            context = replace(context, last_mentioned_person=EntityRef(name=person))

        assignee = call.arg("assigneeName") or call.arg("userName")
        if assignee and assignee.lower() not in SELF_REFERENCES:
            context = replace(context, last_mentioned_user=EntityRef(name=assignee))

        self._context = replace(context, last_action=call.name)
        return self._context

    def to_payload(self) -> ConversationContextPayload | None:
        return ConversationContextPayload.from_context(self._context)

    def clear(self) -> None:
        self._context = ConversationContext()


__all__ = ["ContextMemory", "SELF_REFERENCES"]
