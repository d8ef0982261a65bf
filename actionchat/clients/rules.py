"""Deterministic keyword-based intent backend for development and CI.

It understands a small command vocabulary ("remind me to ...", "create a task
to ...", "email X about ...", "text X ...", "show my tasks", "show overdue
reminders", "status of X", "bench X", "move X to next stage", "how many
projects are overdue", "go to X", "search clients for X") and answers
everything else with a clarification.  Pronouns ("him", "her", "them", "this
client") are filled from the current view first and the conversation context
second.
"""

from __future__ import annotations

import datetime as dt
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from zoneinfo import ZoneInfo

from ..conversations.models import ActionTag
from ..conversations.schemas import FunctionCallPayload, IntentRequest, IntentResponse

DEFAULT_HOUR = 9
CLARIFICATION_SUGGESTIONS = ["Show me my tasks", "Remind me to ", "Show overdue reminders"]

_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_DAY_PATTERN = re.compile(
    r"\b(?:on\s+)?(?P<day>today|tonight|tomorrow|next\s+week|(?:next\s+)?(?:%s))\b" % "|".join(_WEEKDAYS),
    re.I,
)
_TIME_PATTERN = re.compile(r"\bat\s+(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<meridiem>am|pm)?\b", re.I)
_PRIORITY_PATTERN = re.compile(r"\b(?P<priority>low|medium|high|urgent)(?:\s+priority)?\b", re.I)
_CLIENT_SUFFIX = re.compile(r"\s+for\s+(?P<client>[A-Z][\w&'.-]*(?:\s+[A-Z][\w&'.-]*)*)$")
_FROM_COMPANY = re.compile(r"^(?P<name>.+?)\s+(?:from|at)\s+(?P<company>.+)$", re.I)

_PERSON_PRONOUNS = {"him", "her"}
_CLIENT_PRONOUNS = {"it", "this client", "this company", "them"}

_REMINDER = re.compile(r"^(?:please\s+)?remind\s+(?P<who>me|\w+)\s+(?:to\s+|about\s+)?(?P<rest>.+)$", re.I)
_TASK = re.compile(
    r"^(?:please\s+)?(?:create|add|make|new)\s+(?:an?\s+)?(?:(?P<type>\w+)\s+)?task"
    r"(?:\s+for\s+(?P<assignee>\w+)(?=\s+to\b))?\s*(?:to\s+|:\s*)?(?P<rest>.+)$",
    re.I,
)
_EMAIL = re.compile(
    r"^(?:please\s+)?(?:send\s+an?\s+)?e-?mail\s+(?:to\s+)?(?P<name>.+?)"
    r"(?:\s+(?:about|regarding|re)\s+(?P<subject>.+))?$",
    re.I,
)
_SMS = re.compile(
    r"^(?:please\s+)?(?:send\s+an?\s+)?(?:text|sms)\s+(?:to\s+)?(?P<name>\S+(?:\s+from\s+\S+)?)"
    r"(?:\s+(?:saying|that|to\s+say)?\s*(?P<message>.+))?$",
    re.I,
)
_SHOW_TASKS = re.compile(
    r"^(?:show|list|open|view)\s+(?:me\s+)?(?:my\s+|all\s+)?(?P<status>open|closed|overdue|in\s+progress|all)?\s*tasks\b",
    re.I,
)
_SHOW_REMINDERS = re.compile(
    r"^(?:show|list|open|view)\s+(?:me\s+)?(?:my\s+|all\s+)?"
    r"(?P<timeframe>overdue|today'?s|this\s+week'?s|all)?\s*reminders\b",
    re.I,
)
_PROJECT_STATUS = re.compile(
    r"^(?:what(?:'s|\s+is)\s+the\s+)?status\s+of\s+(?:the\s+)?(?P<project>.+?)(?:\s+project)?\??$", re.I
)
_BENCH = re.compile(
    r"^(?:please\s+)?bench\s+(?:the\s+)?(?P<project>.+?)"
    r"(?:\s+(?:for|because\s+of)\s+(?P<reason>legacy\s+work|missing\s+data))?$",
    re.I,
)
_UNBENCH = re.compile(r"^(?:please\s+)?unbench\s+(?:the\s+)?(?P<project>.+)$", re.I)
_MOVE_STAGE = re.compile(
    r"^(?:please\s+)?move\s+(?:the\s+)?(?P<project>.+?)\s+to\s+(?:the\s+)?(?P<stage>.+?)(?:\s+stage)?$", re.I
)
_ANALYTICS = re.compile(
    r"^how\s+many\s+(?:(?P<type>\w+)\s+)?projects\s+are\s+(?P<what>overdue|benched|on\s+the\s+bench)\??$", re.I
)
_SEARCH = re.compile(r"^(?:search|find|look\s+up)\s+(?:clients?\s+)?(?:for\s+)?(?P<term>.+)$", re.I)
_NAVIGATE = re.compile(r"^(?:go\s+to|open|show\s+me|take\s+me\s+to)\s+(?P<target>.+)$", re.I)


@dataclass
class _Context:
    request: IntentRequest

    @property
    def viewed_person(self) -> str | None:
        view = self.request.current_view_context
        return view.person_name if view is not None else None

    @property
    def viewed_client(self) -> str | None:
        view = self.request.current_view_context
        return view.client_name if view is not None else None

    @property
    def remembered_person(self) -> str | None:
        context = self.request.conversation_context
        if context is None or context.last_mentioned_person is None:
            return None
        return context.last_mentioned_person.name

    @property
    def remembered_client(self) -> str | None:
        context = self.request.conversation_context
        if context is None or context.last_mentioned_client is None:
            return None
        return context.last_mentioned_client.name

    def person(self, name: str) -> str:
        if name.lower() in _PERSON_PRONOUNS or (name.lower() == "them" and self.viewed_person):
            return self.viewed_person or self.remembered_person or name
        return name

    def client(self, name: str) -> str:
        if name.lower() in _CLIENT_PRONOUNS:
            return self.viewed_client or self.remembered_client or name
        return name


def _strip(text: str) -> str:
    return re.sub(r"\s{2,}", " ", text).strip(" ,.")


def _sentence(text: str) -> str:
    text = _strip(text)
    return text[:1].upper() + text[1:] if text else text


def extract_when(text: str, now: dt.datetime) -> tuple[dt.datetime | None, str]:
    """Pull a day/time phrase out of ``text``; returns the moment and the remaining text."""

    day_match = _DAY_PATTERN.search(text)
    time_match = _TIME_PATTERN.search(text)
    if day_match is None and time_match is None:
        return None, text

    day = now.date()
    hour, minute = DEFAULT_HOUR, 0
    if day_match is not None:
        phrase = re.sub(r"\s+", " ", day_match.group("day").lower())
        if phrase == "tonight":
            hour = 20
        elif phrase == "tomorrow":
            day += dt.timedelta(days=1)
        elif phrase == "next week":
            day += dt.timedelta(days=7)
        elif phrase != "today":
            target = _WEEKDAYS.index(phrase.replace("next ", ""))
            day += dt.timedelta(days=(target - day.weekday()) % 7 or 7)

    if time_match is not None:
        hour = int(time_match.group("hour")) % 24
        minute = int(time_match.group("minute") or 0) % 60
        meridiem = (time_match.group("meridiem") or "").lower()
        if meridiem == "pm" and hour < 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0

    remaining = text
    for match in sorted(filter(None, (day_match, time_match)), key=lambda m: m.start(), reverse=True):
        remaining = remaining[: match.start()] + remaining[match.end():]
    moment = dt.datetime.combine(day, dt.time(hour, minute), tzinfo=now.tzinfo)
    return moment, _strip(remaining)


class RuleBasedIntentClient:
    """Offline stand-in for the remote intent endpoint."""

    def __init__(self, *, timezone: str = "Europe/London", clock: Callable[[], dt.datetime] | None = None):
        self.timezone = timezone
        self._clock = clock

    def _now(self) -> dt.datetime:
        zone = ZoneInfo(self.timezone)
        if self._clock is None:
            return dt.datetime.now(zone)
        return self._clock().astimezone(zone)

    async def send(self, request: IntentRequest) -> IntentResponse:
        return self.interpret(request)

    def interpret(self, request: IntentRequest) -> IntentResponse:
        text = _strip(request.message)
        context = _Context(request)
        for handler in (
            self._reminder,
            self._task,
            self._email,
            self._sms,
            self._show_tasks,
            self._show_reminders,
            self._project_status,
            self._bench,
            self._unbench,
            self._move_stage,
            self._analytics,
            self._search,
            self._navigate,
        ):
            response = handler(text, context)
            if response is not None:
                return response
        if not text or text.lower() in {"help", "hi", "hello", "hey"}:
            return IntentResponse(
                type="message",
                message="I can create reminders and tasks, send emails or texts, and find clients for you.",
            )
        return IntentResponse(
            type="clarification",
            message="Could you tell me more about what you'd like to do?",
            suggestions=list(CLARIFICATION_SUGGESTIONS),
        )

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    @staticmethod
    def _call(tag: ActionTag, **arguments: Any) -> IntentResponse:
        args = {key: value for key, value in arguments.items() if value not in (None, "")}
        return IntentResponse(type="function_call", function_call=FunctionCallPayload(name=tag.value, arguments=args))

    def _reminder(self, text: str, context: _Context) -> IntentResponse | None:
        match = _REMINDER.match(text)
        if match is None:
            return None
        moment, rest = extract_when(match.group("rest"), self._now())
        client = None
        suffix = _CLIENT_SUFFIX.search(rest)
        if suffix is not None:
            client = suffix.group("client")
            rest = rest[: suffix.start()]
        who = match.group("who")
        return self._call(
            ActionTag.CREATE_REMINDER,
            title=_sentence(rest),
            dateTime=moment.isoformat() if moment else None,
            assigneeName="me" if who.lower() == "me" else who,
            clientName=client or context.viewed_client,
        )

    def _task(self, text: str, context: _Context) -> IntentResponse | None:
        match = _TASK.match(text)
        if match is None:
            return None
        rest = match.group("rest")
        priority = None
        found = _PRIORITY_PATTERN.search(rest)
        if found is not None:
            priority = found.group("priority").lower()
            rest = rest[: found.start()] + rest[found.end():]
        moment, rest = extract_when(rest, self._now())
        client = None
        suffix = _CLIENT_SUFFIX.search(rest)
        if suffix is not None:
            client = suffix.group("client")
            rest = rest[: suffix.start()]
        task_type = match.group("type")
        if task_type and task_type.lower() in {"new", "quick"}:
            task_type = None
        return self._call(
            ActionTag.CREATE_TASK,
            title=_sentence(rest),
            assigneeName=match.group("assignee") or "me",
            priority=priority,
            dueDate=moment.date().isoformat() if moment else None,
            taskTypeName=task_type,
            clientName=client or context.viewed_client,
        )

    def _recipient(self, name: str, context: _Context) -> tuple[str, str | None]:
        found = _FROM_COMPANY.match(name)
        if found is not None:
            return context.person(found.group("name")), context.client(found.group("company"))
        return context.person(name), context.viewed_client

    def _email(self, text: str, context: _Context) -> IntentResponse | None:
        match = _EMAIL.match(text)
        if match is None:
            return None
        recipient, client = self._recipient(_strip(match.group("name")), context)
        subject = match.group("subject")
        return self._call(
            ActionTag.SEND_EMAIL,
            recipientName=recipient,
            clientName=client,
            subject=_sentence(subject) if subject else None,
        )

    def _sms(self, text: str, context: _Context) -> IntentResponse | None:
        match = _SMS.match(text)
        if match is None:
            return None
        recipient, client = self._recipient(_strip(match.group("name")), context)
        message = match.group("message")
        return self._call(
            ActionTag.SEND_SMS,
            recipientName=recipient,
            clientName=client,
            message=_sentence(message) if message else None,
        )

    def _show_tasks(self, text: str, context: _Context) -> IntentResponse | None:
        match = _SHOW_TASKS.match(text)
        if match is None:
            return None
        status = (match.group("status") or "all").lower().replace(" ", "_")
        return self._call(ActionTag.SHOW_TASKS, status=status, assigneeName="me")

    def _show_reminders(self, text: str, context: _Context) -> IntentResponse | None:
        match = _SHOW_REMINDERS.match(text)
        if match is None:
            return None
        timeframe = (match.group("timeframe") or "all").lower().replace("'s", "").replace("'", "")
        return self._call(ActionTag.SHOW_REMINDERS, timeframe=timeframe.replace(" ", "_"))

    def _project_status(self, text: str, context: _Context) -> IntentResponse | None:
        match = _PROJECT_STATUS.match(text)
        if match is None:
            return None
        return self._call(ActionTag.GET_PROJECT_STATUS, projectIdentifier=_strip(match.group("project")))

    def _bench(self, text: str, context: _Context) -> IntentResponse | None:
        match = _BENCH.match(text)
        if match is None:
            return None
        reason = match.group("reason")
        return self._call(
            ActionTag.BENCH_PROJECT,
            projectIdentifier=_strip(match.group("project")),
            benchReason=re.sub(r"\s+", "_", reason.lower()) if reason else None,
        )

    def _unbench(self, text: str, context: _Context) -> IntentResponse | None:
        match = _UNBENCH.match(text)
        if match is None:
            return None
        return self._call(ActionTag.UNBENCH_PROJECT, projectIdentifier=_strip(match.group("project")))

    def _move_stage(self, text: str, context: _Context) -> IntentResponse | None:
        match = _MOVE_STAGE.match(text)
        if match is None:
            return None
        return self._call(
            ActionTag.MOVE_PROJECT_STAGE,
            projectIdentifier=_strip(match.group("project")),
            targetStageName=_strip(match.group("stage")),
        )

    def _analytics(self, text: str, context: _Context) -> IntentResponse | None:
        match = _ANALYTICS.match(text)
        if match is None:
            return None
        query = "overdue_count" if match.group("what").lower() == "overdue" else "bench_count"
        return self._call(ActionTag.GET_ANALYTICS, queryType=query, projectTypeName=match.group("type"))

    def _search(self, text: str, context: _Context) -> IntentResponse | None:
        match = _SEARCH.match(text)
        if match is None:
            return None
        return self._call(ActionTag.SEARCH_CLIENTS, searchTerm=_strip(match.group("term")))

    def _navigate(self, text: str, context: _Context) -> IntentResponse | None:
        match = _NAVIGATE.match(text)
        if match is None:
            return None
        target = _strip(match.group("target"))
        lowered = target.lower()
        if lowered in _PERSON_PRONOUNS or (lowered == "them" and context.viewed_person):
            return self._call(ActionTag.NAVIGATE_TO_PERSON, personName=context.person(target))
        found = _FROM_COMPANY.match(target)
        if found is not None:
            return self._call(
                ActionTag.NAVIGATE_TO_PERSON,
                personName=context.person(found.group("name")),
                clientName=context.client(found.group("company")),
            )
        remembered = context.remembered_person
        if remembered and lowered == remembered.lower():
            return self._call(ActionTag.NAVIGATE_TO_PERSON, personName=remembered)
        return self._call(ActionTag.NAVIGATE_TO_CLIENT, clientName=context.client(target))


__all__ = ["RuleBasedIntentClient", "extract_when"]
