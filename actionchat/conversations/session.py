"""Session controller for one open assistant conversation.

The controller is the only writer of the message log, the action-status map
and the context memory.  A turn appends the user's message and a loading
placeholder, asks the intent backend what to do, then swaps the placeholder
for the assistant's reply in a single state update.  Function calls spawn an
action card; card outcomes come back as events and are applied together with
their summary message.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable, Coroutine, Mapping
from dataclasses import dataclass, field, replace
from typing import Any
from uuid import uuid4

from ..actions.base import (
    ActionCard,
    ActionExecutor,
    ActionNotFoundError,
    ActionStateError,
    ActionValidationError,
    CardContext,
    CardEvent,
    CardOutcome,
    RecordingRouter,
    Router,
)
from ..actions.registry import acknowledgement, create_card
from ..clients.intent import IntentBackend
from ..config import Settings, get_settings
from ..resolution.schemas import FuzzyMatchResult
from ..resolution.service import EntityResolver
from ..voice.controller import RecognizerFactory, VoiceCaptureController
from .memory import ContextMemory
from .models import (
    LOADING_MESSAGE_ID,
    WELCOME_MESSAGE_ID,
    ActionStatus,
    EntityRef,
    FunctionCall,
    Message,
    Notification,
    Role,
    ViewContext,
    new_message_id,
)
from .schemas import (
    ConversationTurn,
    CurrentViewContextPayload,
    IntentRequest,
    IntentResponse,
)
from .suggestions import Suggestion, generate_suggestions

logger = logging.getLogger(__name__)

WELCOME_TEXT = (
    "Hi! I'm your assistant. I can help you create reminders, tasks, send emails, "
    'or find information. Try saying something like "Remind me to call John tomorrow" '
    'or "Show me my tasks".'
)
FALLBACK_TEXT = "I'm having trouble connecting right now. Please try again in a moment."
DEFAULT_MESSAGE_TEXT = "I'm not sure how to help with that. Try asking me to create a reminder or task."
DEFAULT_CLARIFICATION_TEXT = "Could you tell me more about what you'd like to do?"
DEFAULT_ERROR_TEXT = "Something went wrong. Please try again."
# Oldest notifications fall off once the client stops acknowledging them.
MAX_NOTIFICATIONS = 20


def welcome_message() -> Message:
    return Message(id=WELCOME_MESSAGE_ID, role=Role.ASSISTANT, content=WELCOME_TEXT)


def loading_message() -> Message:
    return Message(id=LOADING_MESSAGE_ID, role=Role.ASSISTANT, content="", is_loading=True)


@dataclass(frozen=True)
class SessionState:
    """Snapshot of everything observers render; replaced wholesale on each update."""

    messages: tuple[Message, ...] = ()
    statuses: Mapping[str, ActionStatus] = field(default_factory=dict)


@dataclass
class SessionDependencies:
    """Collaborators shared by every session the host opens."""

    intent: IntentBackend
    resolver: EntityResolver
    executor: ActionExecutor
    current_user: EntityRef
    settings: Settings = field(default_factory=get_settings)
    recognizer_factory: RecognizerFactory | None = None
    router_factory: Callable[[], Router] = RecordingRouter

    def build(
        self,
        *,
        on_close: Callable[[], Awaitable[None]] | None = None,
        view: ViewContext | None = None,
        session_id: str | None = None,
    ) -> SessionController:
        return SessionController(self, on_close=on_close, view=view, session_id=session_id)


class SessionController:
    def __init__(
        self,
        dependencies: SessionDependencies,
        *,
        on_close: Callable[[], Awaitable[None]] | None = None,
        view: ViewContext | None = None,
        session_id: str | None = None,
    ) -> None:
        self.id = session_id or uuid4().hex
        self.settings = dependencies.settings
        self.current_user = dependencies.current_user
        self.router = dependencies.router_factory()
        self.memory = ContextMemory()
        self.view = view or ViewContext()
        self.notifications: deque[Notification] = deque(maxlen=MAX_NOTIFICATIONS)
        self.input_text = ""
        self.in_flight = False
        self.closed = False
        self.live_action_id: str | None = None
        self.voice = VoiceCaptureController(
            dependencies.recognizer_factory,
            on_transcript=self.set_input,
            on_notify=self.notify,
            lang=self.settings.voice_lang,
            grace_delay=self.settings.voice_grace_delay,
        )
        self._intent = dependencies.intent
        self._card_context = CardContext(
            resolver=dependencies.resolver,
            executor=dependencies.executor,
            router=self.router,
            current_user=dependencies.current_user,
            timezone=self.settings.timezone,
        )
        self._cards: dict[str, ActionCard] = {}
        self._state = SessionState(messages=(welcome_message(),))
        self._on_close = on_close
        self._resolve_tasks: set[asyncio.Task[Any]] = set()
        self._close_task: asyncio.Task[Any] | None = None
        self._log = logging.LoggerAdapter(logger, {"session_id": self.id})

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._state.messages

    @property
    def action_statuses(self) -> Mapping[str, ActionStatus]:
        return self._state.statuses

    @property
    def layout(self) -> str:
        return self.settings.panel_layout

    def card(self, message_id: str) -> ActionCard:
        try:
            return self._cards[message_id]
        except KeyError as exc:
            raise ActionNotFoundError(f"No action for message {message_id}") from exc

    def cards(self) -> dict[str, ActionCard]:
        return dict(self._cards)

    def suggestions(self) -> list[Suggestion]:
        return generate_suggestions(self.view, self.memory.context)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def set_input(self, text: str) -> None:
        self.input_text = text

    def set_view(self, view: ViewContext) -> None:
        self.view = view

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)
        self._log.info("Notification: %s - %s", notification.title, notification.description)

    def acknowledge_notifications(self) -> int:
        """Drop every notification the client has shown; returns how many were dropped."""

        count = len(self.notifications)
        self.notifications.clear()
        return count

    async def apply_suggestion(self, text: str) -> bool:
        """Fill the input with ``text``; self-contained phrases are submitted at once."""

        if Suggestion(text).submits:
            return await self.submit(text)
        self.set_input(text)
        return False

    async def submit(self, text: str | None = None) -> bool:
        """Send one turn; returns ``False`` for empty input or while a turn is outstanding."""

        content = (self.input_text if text is None else text).strip()
        if not content or self.in_flight or self.closed:
            return False

        self.in_flight = True
        try:
            request = self._build_request(content)
            user_message = Message(id=new_message_id(), role=Role.USER, content=content)
            self.input_text = ""
            self._commit(messages=(*self._state.messages, user_message, loading_message()))
            await self._run_turn(request)
        finally:
            self.in_flight = False
        return True

    # ------------------------------------------------------------------
    # Turn pipeline
    # ------------------------------------------------------------------

    def _build_request(self, content: str) -> IntentRequest:
        history = [
            ConversationTurn(role=message.role.value, content=message.content)
            for message in self._state.messages
            if message.is_transcript_turn
        ]
        return IntentRequest(
            message=content,
            conversation_history=history,
            conversation_context=self.memory.to_payload(),
            current_view_context=CurrentViewContextPayload.from_view(self.view),
        )

    async def _run_turn(self, request: IntentRequest) -> None:
        try:
            response = await self._intent.send(request)
        except Exception:
            self._log.exception("Intent request failed")
            if not self.closed:
                self._finish_turn(Message(id=new_message_id(), role=Role.ASSISTANT, content=FALLBACK_TEXT))
            return

        if self.closed:
            self._log.info("Dropping intent reply that arrived after close")
            return
        message, call = self._reply_for(response)
        card = create_card(message.id, call, self._card_context) if call is not None else None
        self._finish_turn(message, pending=card is not None)
        if card is None or call is None:
            return
        await self._open_card(card, call)

    def _reply_for(self, response: IntentResponse) -> tuple[Message, FunctionCall | None]:
        message_id = new_message_id()
        if response.type == "function_call" and response.function_call is not None:
            call = response.function_call.to_call()
            if call is not None:
                return (
                    Message(
                        id=message_id,
                        role=Role.ASSISTANT,
                        content=acknowledgement(call.name),
                        function_call=call,
                    ),
                    call,
                )
            self._log.warning("Ignoring unknown action %r", response.function_call.name)
        elif response.type == "clarification":
            return (
                Message(
                    id=message_id,
                    role=Role.ASSISTANT,
                    content=response.message or DEFAULT_CLARIFICATION_TEXT,
                    suggestions=tuple(response.suggestions or ()),
                ),
                None,
            )
        elif response.type == "error":
            return Message(id=message_id, role=Role.ASSISTANT, content=response.message or DEFAULT_ERROR_TEXT), None
        return Message(id=message_id, role=Role.ASSISTANT, content=response.message or DEFAULT_MESSAGE_TEXT), None

    def _finish_turn(self, message: Message, *, pending: bool = False) -> None:
        messages = tuple(item for item in self._state.messages if not item.is_loading)
        statuses = self._state.statuses
        if pending:
            statuses = {**statuses, message.id: ActionStatus.PENDING}
        self._commit(messages=(*messages, message), statuses=statuses)

    async def _open_card(self, card: ActionCard, call: FunctionCall) -> None:
        self.memory.update(call)
        self._cards[card.message_id] = card
        self.live_action_id = card.message_id
        await card.prepare()
        if card.self_resolving and not self.closed:
            self._spawn(self._auto_resolve(card), self._resolve_tasks)

    async def _auto_resolve(self, card: ActionCard) -> None:
        await asyncio.sleep(self.settings.auto_resolve_delay)
        if self.closed or self._state.statuses.get(card.message_id) is not ActionStatus.PENDING:
            return
        self._apply(await card.auto_resolve())

    # ------------------------------------------------------------------
    # Card events
    # ------------------------------------------------------------------

    def _commit(
        self,
        *,
        messages: tuple[Message, ...] | None = None,
        statuses: Mapping[str, ActionStatus] | None = None,
    ) -> None:
        self._state = replace(
            self._state,
            messages=self._state.messages if messages is None else messages,
            statuses=self._state.statuses if statuses is None else statuses,
        )

    def _apply(self, event: CardEvent) -> None:
        current = self._state.statuses.get(event.message_id)
        if current is None:
            raise ActionNotFoundError(f"No action for message {event.message_id}")
        if current.terminal:
            raise ActionStateError(f"Action is already {current.value}")

        messages = self._state.messages
        if event.summary:
            summary = Message(id=new_message_id(), role=Role.ASSISTANT, content=event.summary)
            messages = (*messages, summary)
        statuses = self._state.statuses
        if event.status.terminal:
            statuses = {**statuses, event.message_id: event.status}
        self._commit(messages=messages, statuses=statuses)

        if event.notification is not None:
            self.notify(event.notification)
        if event.status.terminal and self.live_action_id == event.message_id:
            self.live_action_id = None

    def _live_card(self, message_id: str) -> ActionCard:
        card = self.card(message_id)
        status = self._state.statuses.get(message_id)
        if status is not None and status.terminal:
            raise ActionStateError(f"Action is already {status.value}")
        if message_id != self.live_action_id:
            raise ActionStateError("This action has been superseded by a newer one")
        return card

    async def confirm_action(self, message_id: str) -> CardEvent:
        card = self._live_card(message_id)
        try:
            event = await card.confirm()
        except ActionValidationError as exc:
            notification = exc.notification()
            self.notify(notification)
            return CardEvent(message_id=message_id, outcome=CardOutcome.FAILED, notification=notification)
        self._apply(event)
        if event.outcome is CardOutcome.COMPLETED and self.settings.side_panel:
            self._schedule_close()
        return event

    def dismiss_action(self, message_id: str) -> CardEvent:
        event = self._live_card(message_id).dismiss()
        self._apply(event)
        return event

    def edit_action(self, message_id: str, **fields: Any) -> None:
        self._live_card(message_id).edit(**fields)

    def select_candidate(self, message_id: str, field_name: str, candidate_id: str) -> FuzzyMatchResult:
        return self._live_card(message_id).select_candidate(field_name, candidate_id)

    def cancel_disambiguation(self, message_id: str, field_name: str) -> CardEvent:
        event = self._live_card(message_id).cancel_disambiguation(field_name)
        self._apply(event)
        return event

    # ------------------------------------------------------------------
    # Timers and teardown
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, None], bucket: set[asyncio.Task[Any]]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        bucket.add(task)
        task.add_done_callback(bucket.discard)
        return task

    def _schedule_close(self) -> None:
        if self._close_task is not None and not self._close_task.done():
            return
        self._close_task = asyncio.get_running_loop().create_task(self._close_after_delay())

    async def _close_after_delay(self) -> None:
        await asyncio.sleep(self.settings.panel_close_delay)
        if self._on_close is not None:
            await self._on_close()
        else:
            await self.close()

    async def settle(self) -> None:
        """Wait for pending self-resolving actions to finish."""

        while self._resolve_tasks:
            await asyncio.gather(*list(self._resolve_tasks))

    async def close(self) -> None:
        """Tear the session down: stop capture, cancel timers, forget context."""

        if self.closed:
            return
        self.closed = True
        self.voice.cancel()
        current = asyncio.current_task()
        pending = [task for task in self._resolve_tasks if task is not current]
        if self._close_task is not None and self._close_task is not current:
            pending.append(self._close_task)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self.memory.clear()
        self._log.info("Session closed")


__all__ = [
    "DEFAULT_CLARIFICATION_TEXT",
    "DEFAULT_ERROR_TEXT",
    "DEFAULT_MESSAGE_TEXT",
    "FALLBACK_TEXT",
    "MAX_NOTIFICATIONS",
    "SessionController",
    "SessionDependencies",
    "SessionState",
    "WELCOME_TEXT",
]
