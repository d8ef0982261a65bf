"""Context-aware quick suggestions shown above the chat input."""

from __future__ import annotations

from dataclasses import dataclass

from .models import ConversationContext, ViewContext

MAX_SUGGESTIONS = 3

DEFAULT_PHRASES = ("Show me my tasks", "Remind me to ", "Show overdue reminders")

PAGE_PHRASES = {
    "tasks": ("Show overdue tasks", "Show my open tasks", "Create a task to "),
    "reminders": ("Show overdue reminders", "Show today's reminders", "Remind me to "),
    "clients": ("Search clients for ", "Go to ", "Show me my tasks"),
    "people": ("Email ", "Text ", "Show me my tasks"),
}


@dataclass(frozen=True)
class Suggestion:
    text: str

    @property
    def submits(self) -> bool:
        """Self-contained phrases submit at once; placeholders only pre-fill the input."""

        return not (self.text.endswith(" ") or self.text.endswith("..."))


def _entity_phrases(view: ViewContext) -> list[str]:
    if view.viewing_person:
        name = view.person_name
        return [f"Email {name} about ", f"Text {name} ", f"Remind me to call {name} tomorrow"]
    if view.viewing_client:
        name = view.client_name
        return [
            f"Remind me to call {name} tomorrow",
            f"Create a task for {name} ",
            f"Email someone at {name} ",
        ]
    return []


def _memory_phrases(context: ConversationContext, view: ViewContext | None) -> list[str]:
    phrases: list[str] = []
    client = context.last_mentioned_client
    if client and not (view and view.client_name and view.client_name.lower() == client.name.lower()):
        phrases.append(f"Go to {client.name}")
        phrases.append(f"Remind me to follow up with {client.name} tomorrow")
    person = context.last_mentioned_person
    if person and not (view and view.person_name and view.person_name.lower() == person.name.lower()):
        phrases.append(f"Email {person.name} about ")
    return phrases


def generate_suggestions(
    view: ViewContext | None,
    context: ConversationContext | None,
    *,
    limit: int = MAX_SUGGESTIONS,
) -> list[Suggestion]:
    """Pick up to ``limit`` phrases: viewed entity, then page type, then memory, then defaults."""

    phrases: list[str] = []
    if view is not None:
        phrases = _entity_phrases(view)
        if not phrases and view.page in PAGE_PHRASES:
            phrases = list(PAGE_PHRASES[view.page])
    if not phrases and context is not None:
        phrases = _memory_phrases(context, view)
    if not phrases:
        phrases = list(DEFAULT_PHRASES)
    return [Suggestion(text=phrase) for phrase in phrases[:limit]]


__all__ = ["DEFAULT_PHRASES", "Suggestion", "generate_suggestions"]
