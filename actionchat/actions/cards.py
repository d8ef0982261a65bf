"""Concrete action cards, one class per action tag."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, ClassVar
from urllib.parse import quote, urlencode
from zoneinfo import ZoneInfo

from ..clients.base import CollaboratorError
from ..conversations.memory import SELF_REFERENCES
from ..conversations.models import ActionTag, EntityKind, Notification
from ..resolution.schemas import FuzzyMatchResult, MatchType
from ..resolution.service import EntityBinding
from .base import ActionCard, ActionValidationError, ExecutionResult

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_TIME = "09:00"
PRIORITIES = ("low", "medium", "high", "urgent")
TASK_STATUSES = ("all", "open", "in_progress", "closed", "overdue")
REMINDER_TIMEFRAMES = ("overdue", "today", "this_week", "all")
BENCH_REASONS = ("legacy_work", "missing_data", "other")
ANALYTICS_QUERIES = (
    "overdue_count",
    "workload",
    "stage_breakdown",
    "bench_count",
    "completion_stats",
    "project_summary",
)
ANALYTICS_TIMEFRAMES = ("today", "this_week", "this_month", "last_30_days", "all")
ANALYTICS_ITEMS = 5


# ------------------------------------------------------------------
# Field helpers
# ------------------------------------------------------------------


def _parse_iso(value: str) -> dt.datetime | None:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return dt.datetime.fromisoformat(text)
    except ValueError:
        return None


def _has_time(value: str) -> bool:
    text = value.strip()
    return len(text) > 10 and text[10] in "T "


def split_datetime(value: str | None, timezone: str) -> tuple[str, str]:
    """Split an ISO timestamp into ``yyyy-mm-dd`` and ``HH:mm`` in the user's timezone."""

    if not value:
        return "", DEFAULT_REMINDER_TIME
    parsed = _parse_iso(value)
    if parsed is None:
        return "", DEFAULT_REMINDER_TIME
    if not _has_time(value):
        return parsed.strftime("%Y-%m-%d"), DEFAULT_REMINDER_TIME
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(ZoneInfo(timezone))
    return parsed.strftime("%Y-%m-%d"), parsed.strftime("%H:%M")


def parse_date(value: str | None) -> str:
    if not value:
        return ""
    parsed = _parse_iso(value)
    return parsed.strftime("%Y-%m-%d") if parsed is not None else ""


def combine_due(date_text: str, time_text: str, timezone: str) -> dt.datetime:
    try:
        day = dt.date.fromisoformat(date_text)
        hour, minute = (int(part) for part in time_text.split(":", 1))
        return dt.datetime.combine(day, dt.time(hour, minute), tzinfo=ZoneInfo(timezone))
    except ValueError as exc:
        raise ActionValidationError("Invalid date/time", missing=("due_date", "due_time")) from exc


def normalise_priority(value: Any) -> str:
    text = str(value or "medium").strip().lower()
    return text if text in PRIORITIES else "medium"


def normalise_choice(value: Any, choices: tuple[str, ...], default: str) -> str:
    text = str(value or default).strip().lower().replace(" ", "_")
    return text if text in choices else default


def direct_match(entity_id: str, name: str) -> FuzzyMatchResult:
    return FuzzyMatchResult(id=entity_id, name=name, confidence=1.0, match_type=MatchType.EXACT)


# ------------------------------------------------------------------
# Form cards
# ------------------------------------------------------------------


class _FormCard(ActionCard):
    async def _assignee_binding(self, *, fallback_to_self: bool) -> EntityBinding:
        """Bind the assignee; "me"/"myself" and an omitted name mean the requesting user."""

        name = self.call.arg("assigneeName")
        user = self.context.current_user
        me = direct_match(user.id, user.name) if user.id else None
        if not name or name.lower() in SELF_REFERENCES:
            binding = EntityBinding(kind=EntityKind.USER, search_term=name)
            if me is not None:
                binding.bind(me, fallback=not name)
            return binding
        binding = await self.context.resolver.bind(name, EntityKind.USER)
        if fallback_to_self and me is not None and binding.not_found:
            binding.bind(me, fallback=True)
        return binding

    async def _client_binding(self) -> EntityBinding:
        return await self.context.resolver.bind(self.call.arg("clientName"), EntityKind.CLIENT)

    async def _link_client(self, record: dict[str, Any]) -> None:
        client_id = self.bindings["client"].match_id
        record_id = record.get("id")
        if not client_id or not record_id:
            return
        try:
            await self.context.executor.link_client(str(record_id), client_id)
        except CollaboratorError as exc:
            logger.warning("Failed to link client %s to %s: %s", client_id, record_id, exc.reason)


class ReminderCard(_FormCard):
    tag: ClassVar[ActionTag] = ActionTag.CREATE_REMINDER
    editable_fields = ("title", "details", "due_date", "due_time")
    required_fields = ("title", "due_date", "due_time", "assignee")

    async def prepare(self) -> None:
        due_date, due_time = split_datetime(self.call.arg("dateTime"), self.context.timezone)
        self.fields = {
            "title": self.call.arg("title") or "",
            "details": self.call.arg("details") or "",
            "due_date": due_date,
            "due_time": due_time,
        }
        self.bindings["assignee"] = await self._assignee_binding(fallback_to_self=True)
        self.bindings["client"] = await self._client_binding()

    async def execute(self) -> ExecutionResult:
        title = self._field("title")
        due = combine_due(self._field("due_date"), self._field("due_time"), self.context.timezone)
        payload: dict[str, Any] = {
            "title": title,
            "dueDate": due.isoformat(),
            "assignedTo": self.bindings["assignee"].match_id,
            "isQuickReminder": True,
            "priority": "medium",
        }
        if self._field("details"):
            payload["description"] = self._field("details")
        reminder = await self.context.executor.create_reminder(payload)
        await self._link_client(reminder)
        return ExecutionResult(
            summary=f'Created reminder: "{title}"',
            notification=Notification(title="Reminder created", description=f'"{title}" has been set.'),
        )


class TaskCard(_FormCard):
    tag: ClassVar[ActionTag] = ActionTag.CREATE_TASK
    editable_fields = ("title", "description", "priority", "due_date")
    required_fields = ("title", "assignee", "task_type")

    async def prepare(self) -> None:
        self.fields = {
            "title": self.call.arg("title") or "",
            "description": self.call.arg("description") or "",
            "priority": normalise_priority(self.call.arg("priority")),
            "due_date": parse_date(self.call.arg("dueDate")),
        }
        self.bindings["assignee"] = await self._assignee_binding(fallback_to_self=False)
        self.bindings["task_type"] = await self.context.resolver.bind(
            self.call.arg("taskTypeName"), EntityKind.TASK_TYPE
        )
        self.bindings["client"] = await self._client_binding()

    def edit(self, **changes: Any) -> None:
        if "priority" in changes:
            changes["priority"] = normalise_priority(changes["priority"])
        super().edit(**changes)

    def missing_field_error(self, missing: tuple[str, ...]) -> ActionValidationError:
        if missing == ("task_type",):
            return ActionValidationError("Please select a task type", missing=missing)
        return super().missing_field_error(missing)

    async def execute(self) -> ExecutionResult:
        title = self._field("title")
        payload: dict[str, Any] = {
            "title": title,
            "taskTypeId": self.bindings["task_type"].match_id,
            "priority": normalise_priority(self.fields.get("priority")),
            "status": "open",
            "assignedTo": self.bindings["assignee"].match_id,
        }
        if self._field("description"):
            payload["description"] = self._field("description")
        if self._field("due_date"):
            payload["dueDate"] = self._field("due_date")
        task = await self.context.executor.create_task(payload)
        await self._link_client(task)
        return ExecutionResult(
            summary=f'Created task: "{title}"',
            notification=Notification(title="Task created", description=f'"{title}" has been created.'),
        )


class _MessageCard(_FormCard):
    contact_field: ClassVar[str] = "email"
    no_match_description: ClassVar[str] = ""

    async def _recipient_binding(self) -> EntityBinding:
        return await self.context.resolver.bind(
            self.call.arg("recipientName"),
            EntityKind.PERSON,
            company=self.call.arg("clientName"),
            require_contact=self.contact_field,
        )

    def missing_field_error(self, missing: tuple[str, ...]) -> ActionValidationError:
        if "recipient" in missing:
            return ActionValidationError(self.no_match_description, missing=missing, title="No match found")
        return super().missing_field_error(missing)

    def _recipient_name(self) -> str:
        match = self.bindings["recipient"].match
        return self.call.arg("recipientName") or (match.name if match else "")


class EmailCard(_MessageCard):
    tag: ClassVar[ActionTag] = ActionTag.SEND_EMAIL
    editable_fields = ("subject", "body")
    required_fields = ("recipient", "subject", "body")
    contact_field = "email"
    no_match_description = "Could not find a matching contact. Please check the name and try again."

    async def prepare(self) -> None:
        self.fields = {"subject": self.call.arg("subject") or "", "body": self.call.arg("body") or ""}
        self.bindings["recipient"] = await self._recipient_binding()

    async def execute(self) -> ExecutionResult:
        match = self.bindings["recipient"].match
        if match is None:
            raise self.missing_field_error(("recipient",))
        payload: dict[str, Any] = {
            "personId": match.id,
            "to": match.email,
            "subject": self._field("subject"),
            "body": self._field("body"),
        }
        await self.context.executor.send_email({k: v for k, v in payload.items() if v is not None})
        return ExecutionResult(
            summary=f"Email sent to {self._recipient_name()}",
            notification=Notification(title="Email sent!", description="Email sent successfully"),
        )


class SmsCard(_MessageCard):
    tag: ClassVar[ActionTag] = ActionTag.SEND_SMS
    editable_fields = ("message",)
    required_fields = ("recipient", "message")
    contact_field = "mobile"
    no_match_description = (
        "Could not find a matching contact with a mobile number. Please check the name and try again."
    )

    async def prepare(self) -> None:
        self.fields = {"message": self.call.arg("message") or ""}
        self.bindings["recipient"] = await self._recipient_binding()

    async def execute(self) -> ExecutionResult:
        match = self.bindings["recipient"].match
        if match is None:
            raise self.missing_field_error(("recipient",))
        payload: dict[str, Any] = {"personId": match.id, "to": match.mobile, "message": self._field("message")}
        await self.context.executor.send_sms({k: v for k, v in payload.items() if v is not None})
        return ExecutionResult(
            summary=f"SMS sent to {self._recipient_name()}",
            notification=Notification(title="SMS sent!", description="SMS sent successfully"),
        )


# ------------------------------------------------------------------
# Project cards
# ------------------------------------------------------------------


def pick_stage(details: dict[str, Any], target: str) -> dict[str, Any] | None:
    """``"next"`` or a blank target means the workflow's next stage, otherwise the first name containing it."""

    if not target or target.lower() == "next":
        return details.get("nextStage") or None
    wanted = target.lower()
    for stage in details.get("stages") or []:
        if wanted in str(stage.get("name", "")).lower():
            return stage
    return None


def pick_reason(reasons: list[dict[str, Any]], wanted: str) -> dict[str, Any] | None:
    if wanted:
        lowered = wanted.lower()
        return next((reason for reason in reasons if lowered in str(reason.get("name", "")).lower()), None)
    return reasons[0] if len(reasons) == 1 else None


class _ProjectCard(ActionCard):
    """Cards that address one project by a spoken identifier such as "Acme VAT"."""

    async def _project_binding(self) -> EntityBinding:
        return await self.context.resolver.bind(self.call.arg("projectIdentifier"), EntityKind.PROJECT)

    def _project(self) -> FuzzyMatchResult:
        match = self.bindings["project"].match
        if match is None:
            raise self.missing_field_error(("project",))
        return match

    async def _load_details(self) -> dict[str, Any]:
        match = self.bindings["project"].match
        if match is None:
            return {}
        try:
            details = await self.context.executor.get_project_details(match.id)
        except CollaboratorError as exc:
            logger.warning("Loading project %s failed: %s", match.id, exc.reason)
            return {}
        self._show(details)
        return details

    def _show(self, details: dict[str, Any]) -> None:
        next_stage = details.get("nextStage") or {}
        self.fields.update(
            {
                "client_name": details.get("clientName") or "",
                "project_type": details.get("projectTypeName") or "",
                "current_status": details.get("currentStatus") or "",
                "is_benched": bool(details.get("isBenched")),
                "assignee_name": details.get("assigneeName") or "",
                "due_date": parse_date(details.get("dueDate")),
                "next_stage": next_stage.get("name") or "",
            }
        )

    def _labels(self, match: FuzzyMatchResult, details: dict[str, Any]) -> tuple[str, str]:
        client = details.get("clientName") or match.company_name or match.name
        return client, details.get("projectTypeName") or ""

    def missing_field_error(self, missing: tuple[str, ...]) -> ActionValidationError:
        if "project" in missing and self.bindings["project"].ambiguous:
            return ActionValidationError("Please choose which project you mean", missing=missing)
        if "project" in missing:
            name = self.call.arg("projectIdentifier") or ""
            return ActionValidationError(f'No project found matching "{name}"', missing=missing, title="Not found")
        return super().missing_field_error(missing)


class ProjectStatusCard(_ProjectCard):
    tag: ClassVar[ActionTag] = ActionTag.GET_PROJECT_STATUS
    required_fields = ("project",)

    async def prepare(self) -> None:
        binding = await self._project_binding()
        # A status lookup is read-only, so the best candidate is shown without asking.
        if binding.match is None and binding.candidates:
            binding.bind(binding.candidates[0])
        self.bindings["project"] = binding
        await self._load_details()

    async def execute(self) -> ExecutionResult:
        match = self._project()
        client = self.fields.get("client_name") or match.company_name or match.name
        self.context.router.navigate(f"/projects/{match.id}")
        return ExecutionResult(summary=f"Viewing project: {client}")


class BenchProjectCard(_ProjectCard):
    tag: ClassVar[ActionTag] = ActionTag.BENCH_PROJECT
    editable_fields = ("bench_reason", "bench_reason_other_text")
    required_fields = ("project", "bench_reason")
    failure_title = "Failed to bench project"

    async def prepare(self) -> None:
        self.fields = {
            "bench_reason": normalise_choice(self.call.arg("benchReason"), BENCH_REASONS, ""),
            "bench_reason_other_text": self.call.arg("benchReasonOtherText") or "",
        }
        self.bindings["project"] = await self._project_binding()
        await self._load_details()

    def edit(self, **changes: Any) -> None:
        if "bench_reason" in changes:
            changes["bench_reason"] = normalise_choice(changes["bench_reason"], BENCH_REASONS, "")
        super().edit(**changes)

    def missing_fields(self) -> list[str]:
        missing = super().missing_fields()
        if self.fields.get("bench_reason") == "other" and not self._field("bench_reason_other_text"):
            missing.append("bench_reason_other_text")
        return missing

    def missing_field_error(self, missing: tuple[str, ...]) -> ActionValidationError:
        if missing == ("bench_reason",):
            return ActionValidationError("Please select a reason for benching", missing=missing)
        if missing == ("bench_reason_other_text",):
            return ActionValidationError("Please describe the reason for benching", missing=missing)
        return super().missing_field_error(missing)

    async def execute(self) -> ExecutionResult:
        match = self._project()
        details = await self.context.executor.get_project_details(match.id)
        if details.get("isBenched"):
            raise ActionValidationError("This project is already on the bench", title="Already benched")
        reason = self.fields["bench_reason"]
        payload: dict[str, Any] = {"benchReason": reason}
        if reason == "other":
            payload["benchReasonOtherText"] = self._field("bench_reason_other_text")
        await self.context.executor.bench_project(match.id, payload)
        client, project_type = self._labels(match, details)
        return ExecutionResult(
            summary=f"Benched: {client}",
            notification=Notification(title="Project benched", description=f"{client} - {project_type} moved to bench"),
        )


class UnbenchProjectCard(_ProjectCard):
    tag: ClassVar[ActionTag] = ActionTag.UNBENCH_PROJECT
    editable_fields = ("notes",)
    required_fields = ("project",)
    failure_title = "Failed to unbench project"

    async def prepare(self) -> None:
        self.fields = {"notes": self.call.arg("notes") or ""}
        self.bindings["project"] = await self._project_binding()
        await self._load_details()

    async def execute(self) -> ExecutionResult:
        match = self._project()
        details = await self.context.executor.get_project_details(match.id)
        if not details.get("isBenched"):
            raise ActionValidationError("This project is not on the bench", title="Not benched")
        payload = {"notes": self._field("notes")} if self._field("notes") else {}
        await self.context.executor.unbench_project(match.id, payload)
        client, project_type = self._labels(match, details)
        return ExecutionResult(
            summary=f"Unbenched: {client}",
            notification=Notification(
                title="Project unbenched", description=f"{client} - {project_type} removed from bench"
            ),
        )


class MoveProjectStageCard(_ProjectCard):
    tag: ClassVar[ActionTag] = ActionTag.MOVE_PROJECT_STAGE
    editable_fields = ("target_stage", "reason", "notes")
    required_fields = ("project",)
    failure_title = "Failed to move project"

    async def prepare(self) -> None:
        self.fields = {
            "target_stage": self.call.arg("targetStageName") or "",
            "reason": self.call.arg("reason") or "",
            "notes": self.call.arg("notes") or "",
        }
        self.bindings["project"] = await self._project_binding()
        details = await self._load_details()
        stage = pick_stage(details, self._field("target_stage")) if details else None
        self.fields["stage"] = stage.get("name", "") if stage else ""

    async def execute(self) -> ExecutionResult:
        match = self._project()
        details = await self.context.executor.get_project_details(match.id)
        if details.get("isBenched"):
            raise ActionValidationError("Cannot change stage while the project is on the bench", title="On the bench")
        target = self._field("target_stage")
        stage = pick_stage(details, target)
        if stage is None:
            raise ActionValidationError(
                f'No stage matching "{target}"' if target else "This project has no next stage",
                missing=("target_stage",),
            )
        reasons = await self.context.executor.list_stage_reasons(match.id, str(stage["id"]))
        reason = pick_reason(reasons, self._field("reason"))
        if reasons and reason is None:
            raise ActionValidationError("Please select a reason for the stage change", missing=("reason",))
        payload: dict[str, Any] = {
            "newStatus": stage.get("name"),
            "stageId": stage["id"],
            "reasonId": reason.get("id") if reason else None,
            "changeReason": reason.get("name") if reason else None,
            "notes": self._field("notes") or None,
        }
        await self.context.executor.move_project_stage(
            match.id, {key: value for key, value in payload.items() if value is not None}
        )
        client, _ = self._labels(match, details)
        return ExecutionResult(
            summary=f"Moved: {client} to {stage.get('name')}",
            notification=Notification(title="Stage updated", description=f'{client} moved to "{stage.get("name")}"'),
        )


class AnalyticsCard(ActionCard):
    tag: ClassVar[ActionTag] = ActionTag.GET_ANALYTICS
    required_fields = ("query_type",)

    async def prepare(self) -> None:
        timeframe = self.call.arg("timeframe")
        self.fields = {
            "query_type": normalise_choice(self.call.arg("queryType"), ANALYTICS_QUERIES, "project_summary"),
            "project_type_name": self.call.arg("projectTypeName") or "",
            "user_name": self.call.arg("userName") or "",
            "client_name": self.call.arg("clientName") or "",
            "timeframe": normalise_choice(timeframe, ANALYTICS_TIMEFRAMES, "all") if timeframe else "",
            "title": "Analytics",
            "summary": "No data available",
            "items": [],
        }
        try:
            result = await self.context.executor.get_analytics(self._params())
        except CollaboratorError as exc:
            logger.warning("Analytics %s failed: %s", self.fields["query_type"], exc.reason)
            self.fields["summary"] = "Unable to load analytics data. Try again later."
            return
        self.fields["title"] = result.get("title") or "Analytics"
        self.fields["summary"] = result.get("summary") or "No data available"
        self.fields["items"] = list(result.get("items") or [])[:ANALYTICS_ITEMS]

    def _params(self) -> dict[str, str]:
        params = {
            "queryType": self.fields["query_type"],
            "projectTypeName": self._field("project_type_name"),
            "userName": self._field("user_name"),
            "clientName": self._field("client_name"),
            "timeframe": self._field("timeframe"),
        }
        return {key: value for key, value in params.items() if value}

    async def execute(self) -> ExecutionResult:
        query_type = self.fields["query_type"]
        filters: dict[str, str] = {}
        if query_type == "overdue_count":
            filters["filter"] = "overdue"
        elif query_type == "bench_count":
            filters["filter"] = "benched"
        if self._field("project_type_name"):
            filters["type"] = self._field("project_type_name")
        self.context.router.navigate(f"/projects?{urlencode(filters)}" if filters else "/projects")
        return ExecutionResult(summary=f"Viewing {query_type.replace('_', ' ')} analytics")


# ------------------------------------------------------------------
# Self-resolving cards
# ------------------------------------------------------------------


class _RouteCard(ActionCard):
    self_resolving = True


class _NavigateCard(_RouteCard):
    kind: ClassVar[EntityKind]
    name_arg: ClassVar[str]
    id_arg: ClassVar[str]
    path_prefix: ClassVar[str]
    label: ClassVar[str]

    async def prepare(self) -> None:
        name = self.call.arg(self.name_arg)
        entity_id = self.call.arg(self.id_arg)
        if entity_id:
            binding = EntityBinding(kind=self.kind, search_term=name)
            binding.bind(direct_match(entity_id, name or entity_id))
        else:
            binding = await self.context.resolver.bind(name, self.kind, company=self._company())
        self.bindings["target"] = binding

    def _company(self) -> str | None:
        return None

    def _target(self) -> FuzzyMatchResult | None:
        binding = self.bindings["target"]
        if binding.match is not None:
            return binding.match
        # Read-only navigation takes the top candidate instead of asking.
        return binding.candidates[0] if binding.candidates else None

    async def route(self) -> str | None:
        target = self._target()
        if target is None:
            return None
        return f"{self.path_prefix}/{target.id}"

    def summary_for_route(self) -> str | None:
        target = self._target()
        return f"Navigating to {target.name if target else self.call.arg(self.name_arg)}..."

    def not_found_notification(self) -> Notification:
        name = self.call.arg(self.name_arg) or ""
        return Notification(
            title="Not found",
            description=f'Could not find {self.label} "{name}"',
            variant="destructive",
        )


class NavigateToClientCard(_NavigateCard):
    tag: ClassVar[ActionTag] = ActionTag.NAVIGATE_TO_CLIENT
    kind = EntityKind.CLIENT
    name_arg = "clientName"
    id_arg = "clientId"
    path_prefix = "/clients"
    label = "client"


class NavigateToPersonCard(_NavigateCard):
    tag: ClassVar[ActionTag] = ActionTag.NAVIGATE_TO_PERSON
    kind = EntityKind.PERSON
    name_arg = "personName"
    id_arg = "personId"
    path_prefix = "/people"
    label = "person"

    def _company(self) -> str | None:
        return self.call.arg("clientName")


def _is_close_match(term: str, name: str) -> bool:
    search = term.lower().strip()
    target = name.lower().strip()
    if target == search:
        return True
    if target.startswith(search) and len(search) >= 4:
        return True
    return search in target and len(search) >= len(target) * 0.6


class SearchClientsCard(_RouteCard):
    tag: ClassVar[ActionTag] = ActionTag.SEARCH_CLIENTS

    async def prepare(self) -> None:
        term = self.call.arg("searchTerm") or ""
        self.fields = {"search_term": term}
        binding = await self.context.resolver.bind(term, EntityKind.CLIENT)
        exact = [match for match in binding.candidates if match.name.lower().strip() == term.lower()]
        close = exact or [match for match in binding.candidates if _is_close_match(term, match.name)]
        binding.match = close[0] if close else None
        binding.requires_disambiguation = False
        self.bindings["client"] = binding

    async def route(self) -> str | None:
        match = self.bindings["client"].match
        if match is not None:
            return f"/clients/{match.id}"
        return f"/clients?search={quote(self._field('search_term'), safe='')}"

    def summary_for_route(self) -> str | None:
        match = self.bindings["client"].match
        if match is not None:
            return f"Opening {match.name}..."
        return f'Searching for "{self._field("search_term")}"...'


class ShowTasksCard(_RouteCard):
    tag: ClassVar[ActionTag] = ActionTag.SHOW_TASKS

    async def prepare(self) -> None:
        self.fields = {
            "status": normalise_choice(self.call.arg("status"), TASK_STATUSES, "all"),
            "assignee_name": self.call.arg("assigneeName") or "",
        }

    async def route(self) -> str | None:
        return f"/internal-tasks?tab=tasks&status={quote(self.fields['status'], safe='')}"

    def summary_for_route(self) -> str | None:
        return "Navigating to tasks..."


class ShowRemindersCard(_RouteCard):
    tag: ClassVar[ActionTag] = ActionTag.SHOW_REMINDERS

    async def prepare(self) -> None:
        self.fields = {
            "timeframe": normalise_choice(self.call.arg("timeframe"), REMINDER_TIMEFRAMES, "all"),
        }

    async def route(self) -> str | None:
        path = "/internal-tasks?tab=reminders"
        if self.fields["timeframe"] == "overdue":
            path += "&filter=overdue"
        return path

    def summary_for_route(self) -> str | None:
        return "Navigating to reminders..."


__all__ = [
    "AnalyticsCard",
    "BenchProjectCard",
    "EmailCard",
    "MoveProjectStageCard",
    "NavigateToClientCard",
    "NavigateToPersonCard",
    "ProjectStatusCard",
    "ReminderCard",
    "SearchClientsCard",
    "ShowRemindersCard",
    "ShowTasksCard",
    "SmsCard",
    "TaskCard",
    "UnbenchProjectCard",
    "combine_due",
    "normalise_priority",
    "pick_reason",
    "pick_stage",
    "split_datetime",
]
