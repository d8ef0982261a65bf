"""Maps action tags to their card classes and acknowledgement texts."""

from __future__ import annotations

from ..conversations.models import ActionTag, FunctionCall
from .base import ActionCard, CardContext
from .cards import (
    AnalyticsCard,
    BenchProjectCard,
    EmailCard,
    MoveProjectStageCard,
    NavigateToClientCard,
    NavigateToPersonCard,
    ProjectStatusCard,
    ReminderCard,
    SearchClientsCard,
    ShowRemindersCard,
    ShowTasksCard,
    SmsCard,
    TaskCard,
    UnbenchProjectCard,
)

CARD_TYPES: dict[ActionTag, type[ActionCard]] = {
    ActionTag.CREATE_REMINDER: ReminderCard,
    ActionTag.CREATE_TASK: TaskCard,
    ActionTag.SEND_EMAIL: EmailCard,
    ActionTag.SEND_SMS: SmsCard,
    ActionTag.NAVIGATE_TO_CLIENT: NavigateToClientCard,
    ActionTag.NAVIGATE_TO_PERSON: NavigateToPersonCard,
    ActionTag.SEARCH_CLIENTS: SearchClientsCard,
    ActionTag.SHOW_TASKS: ShowTasksCard,
    ActionTag.SHOW_REMINDERS: ShowRemindersCard,
    ActionTag.GET_PROJECT_STATUS: ProjectStatusCard,
    ActionTag.BENCH_PROJECT: BenchProjectCard,
    ActionTag.UNBENCH_PROJECT: UnbenchProjectCard,
    ActionTag.MOVE_PROJECT_STAGE: MoveProjectStageCard,
    ActionTag.GET_ANALYTICS: AnalyticsCard,
}

ACKNOWLEDGEMENTS: dict[ActionTag, str] = {
    ActionTag.CREATE_REMINDER: "Got it! I'll help you create a reminder.",
    ActionTag.CREATE_TASK: "Got it! I'll help you create a task.",
    ActionTag.SEND_EMAIL: "Got it! I'll help you compose an email.",
    ActionTag.SEND_SMS: "Got it! I'll help you send an SMS.",
    ActionTag.NAVIGATE_TO_CLIENT: "Found it! Let me take you there.",
    ActionTag.NAVIGATE_TO_PERSON: "Found it! Let me take you there.",
    ActionTag.SEARCH_CLIENTS: "I'll search for that.",
    ActionTag.SHOW_TASKS: "Here are your tasks.",
    ActionTag.SHOW_REMINDERS: "Here are your reminders.",
    ActionTag.GET_PROJECT_STATUS: "I understood: get project status",
    ActionTag.BENCH_PROJECT: "I understood: bench project",
    ActionTag.UNBENCH_PROJECT: "I understood: unbench project",
    ActionTag.MOVE_PROJECT_STAGE: "I understood: move project stage",
    ActionTag.GET_ANALYTICS: "I understood: get analytics",
}


def acknowledgement(tag: ActionTag) -> str:
    return ACKNOWLEDGEMENTS[tag]


def create_card(message_id: str, call: FunctionCall, context: CardContext) -> ActionCard:
    return CARD_TYPES[call.name](message_id, call, context)


__all__ = ["ACKNOWLEDGEMENTS", "CARD_TYPES", "acknowledgement", "create_card"]
