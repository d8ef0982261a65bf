"""Action card state machine shared by every proposed action.

A card is created for each function-call message.  It starts ``pending``,
pre-populates its fields and entity bindings, and ends either ``completed``
(after a confirmed mutation or an automatic route change) or ``dismissed``.
Cards never touch the session's message log: they return a :class:`CardEvent`
that the session controller applies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Protocol

from ..clients.base import CollaboratorError
from ..conversations.models import ActionStatus, ActionTag, EntityRef, FunctionCall, Notification
from ..resolution.schemas import FuzzyMatchResult
from ..resolution.service import DisambiguationRequest, EntityBinding, EntityResolver

logger = logging.getLogger(__name__)


class ActionValidationError(ValueError):
    """Raised when a card cannot be confirmed as filled in."""

    def __init__(self, message: str, *, missing: tuple[str, ...] = (), title: str = "Error"):
        super().__init__(message)
        self.missing = missing
        self.title = title

    def notification(self) -> Notification:
        return Notification(title=self.title, description=str(self), variant="destructive")


class ActionStateError(RuntimeError):
    """Raised for operations that the card's current state does not allow."""


class ActionNotFoundError(LookupError):
    """Raised when no action card exists for a message."""


class Router(Protocol):
    def navigate(self, path: str) -> None: ...


class RecordingRouter:
    """Router that keeps the requested paths for the front end to replay."""

    def __init__(self) -> None:
        self.paths: list[str] = []

    def navigate(self, path: str) -> None:
        self.paths.append(path)

    @property
    def last(self) -> str | None:
        return self.paths[-1] if self.paths else None


class ActionExecutor(Protocol):
    async def create_reminder(self, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def create_task(self, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def link_client(self, task_id: str, client_id: str) -> None: ...

    async def send_email(self, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def send_sms(self, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def bench_project(self, project_id: str, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def unbench_project(self, project_id: str, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def move_project_stage(self, project_id: str, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def get_project_details(self, project_id: str) -> dict[str, Any]: ...

    async def list_stage_reasons(self, project_id: str, stage_id: str) -> list[dict[str, Any]]: ...

    async def get_analytics(self, params: dict[str, str]) -> dict[str, Any]: ...


@dataclass
class CardContext:
    resolver: EntityResolver
    executor: ActionExecutor
    router: Router
    current_user: EntityRef
    timezone: str = "Europe/London"


class CardOutcome(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    DISMISSED = "dismissed"


@dataclass(frozen=True)
class CardEvent:
    message_id: str
    outcome: CardOutcome
    summary: str | None = None
    notification: Notification | None = None

    @property
    def status(self) -> ActionStatus:
        if self.outcome is CardOutcome.COMPLETED:
            return ActionStatus.COMPLETED
        if self.outcome is CardOutcome.DISMISSED:
            return ActionStatus.DISMISSED
        return ActionStatus.PENDING


@dataclass(frozen=True)
class ExecutionResult:
    summary: str | None
    notification: Notification | None = None


class ActionCard:
    """Base class; subclasses declare their fields and implement ``execute``."""

    tag: ClassVar[ActionTag]
    self_resolving: ClassVar[bool] = False
    editable_fields: ClassVar[tuple[str, ...]] = ()
    required_fields: ClassVar[tuple[str, ...]] = ()
    failure_title: ClassVar[str] = "Error"

    def __init__(self, message_id: str, call: FunctionCall, context: CardContext) -> None:
        self.message_id = message_id
        self.call = call
        self.context = context
        self.status = ActionStatus.PENDING
        self.fields: dict[str, Any] = {}
        self.bindings: dict[str, EntityBinding] = {}
        self.not_found = False
        self._submitting = False

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    async def prepare(self) -> None:
        """Pre-populate fields and resolve bindings from the call arguments."""

    async def execute(self) -> ExecutionResult:
        raise NotImplementedError

    async def route(self) -> str | None:
        raise NotImplementedError

    def summary_for_route(self) -> str | None:
        return None

    def not_found_notification(self) -> Notification | None:
        return None

    def missing_field_error(self, missing: tuple[str, ...]) -> ActionValidationError:
        return ActionValidationError("Please fill in all required fields", missing=missing)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_pending(self) -> None:
        if self.status.terminal:
            raise ActionStateError(f"Action is already {self.status.value}")

    def _event(self, outcome: CardOutcome, **kwargs: Any) -> CardEvent:
        return CardEvent(message_id=self.message_id, outcome=outcome, **kwargs)

    def _has(self, name: str) -> bool:
        binding = self.bindings.get(name)
        if binding is not None:
            return binding.bound
        value = self.fields.get(name)
        if isinstance(value, str):
            return bool(value.strip())
        return value is not None

    def _field(self, name: str) -> str:
        value = self.fields.get(name)
        return value.strip() if isinstance(value, str) else ""

    def missing_fields(self) -> list[str]:
        return [name for name in self.required_fields if not self._has(name)]

    @property
    def is_valid(self) -> bool:
        return not self.missing_fields()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def edit(self, **changes: Any) -> None:
        self._require_pending()
        if self.self_resolving:
            raise ActionStateError("This action resolves automatically and has no form")
        unknown = sorted(set(changes) - set(self.editable_fields))
        if unknown:
            raise ActionValidationError(f"Unknown field(s): {', '.join(unknown)}", missing=tuple(unknown))
        self.fields.update(changes)

    async def confirm(self) -> CardEvent:
        self._require_pending()
        if self.self_resolving:
            raise ActionStateError("This action resolves automatically")
        if self._submitting:
            raise ActionStateError("Action is already being submitted")
        missing = tuple(self.missing_fields())
        if missing:
            raise self.missing_field_error(missing)

        self._submitting = True
        try:
            result = await self.execute()
        except CollaboratorError as exc:
            logger.warning("%s for message %s failed: %s", self.tag.value, self.message_id, exc.reason)
            return self._event(
                CardOutcome.FAILED,
                notification=Notification(title=self.failure_title, description=exc.reason, variant="destructive"),
            )
        finally:
            self._submitting = False

        self.status = ActionStatus.COMPLETED
        return self._event(CardOutcome.COMPLETED, summary=result.summary, notification=result.notification)

    async def auto_resolve(self) -> CardEvent:
        self._require_pending()
        if not self.self_resolving:
            raise ActionStateError("This action needs confirmation")
        path = await self.route()
        self.status = ActionStatus.COMPLETED
        if path is None:
            self.not_found = True
            return self._event(CardOutcome.COMPLETED, notification=self.not_found_notification())
        self.context.router.navigate(path)
        return self._event(CardOutcome.COMPLETED, summary=self.summary_for_route())

    def dismiss(self) -> CardEvent:
        self._require_pending()
        self.status = ActionStatus.DISMISSED
        return self._event(CardOutcome.DISMISSED)

    def disambiguations(self) -> dict[str, DisambiguationRequest]:
        requests: dict[str, DisambiguationRequest] = {}
        for name, binding in self.bindings.items():
            if binding.ambiguous:
                requests[name] = self._disambiguation_for(binding)
        return requests

    def _disambiguation_for(self, binding: EntityBinding) -> DisambiguationRequest:
        def _cancel() -> None:
            self.status = ActionStatus.DISMISSED

        return DisambiguationRequest(
            entity_type=binding.kind,
            search_term=binding.search_term or "",
            matches=list(binding.candidates),
            on_select=binding.bind,
            on_cancel=_cancel,
        )

    def _binding(self, name: str) -> EntityBinding:
        binding = self.bindings.get(name)
        if binding is None:
            raise ActionValidationError(f"Unknown binding: {name}", missing=(name,))
        return binding

    def select_candidate(self, name: str, candidate_id: str) -> FuzzyMatchResult:
        """Bind ``name`` to one of its offered candidates without re-querying."""

        self._require_pending()
        binding = self._binding(name)
        if not binding.candidates:
            raise ActionStateError(f"No candidates to choose from for {name}")
        try:
            return self._disambiguation_for(binding).select(candidate_id)
        except LookupError as exc:
            raise ActionValidationError(str(exc), missing=(name,)) from exc

    def cancel_disambiguation(self, name: str) -> CardEvent:
        """Abort the whole action; nothing chosen so far is applied."""

        self._require_pending()
        binding = self._binding(name)
        if not binding.ambiguous:
            raise ActionStateError(f"{name} is not awaiting a choice")
        self._disambiguation_for(binding).cancel()
        return self._event(CardOutcome.DISMISSED)

    def describe(self) -> dict[str, Any]:
        return {
            "messageId": self.message_id,
            "tag": self.tag.value,
            "status": self.status.value,
            "selfResolving": self.self_resolving,
            "fields": dict(self.fields),
            "bindings": {name: binding.describe() for name, binding in self.bindings.items()},
            "disambiguations": {
                name: request.options() for name, request in self.disambiguations().items()
            },
            "missingFields": self.missing_fields(),
            "notFound": self.not_found,
        }


__all__ = [
    "ActionCard",
    "ActionExecutor",
    "ActionNotFoundError",
    "ActionStateError",
    "ActionValidationError",
    "CardContext",
    "CardEvent",
    "CardOutcome",
    "ExecutionResult",
    "RecordingRouter",
    "Router",
]
