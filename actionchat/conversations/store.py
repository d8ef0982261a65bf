"""In-memory registry of open assistant sessions."""

from __future__ import annotations

import logging
from typing import Protocol

from .models import EntityRef, ViewContext
from .session import SessionController, SessionDependencies

logger = logging.getLogger(__name__)


class SessionNotFoundError(LookupError):
    """Raised when a session id is unknown or already closed."""


class SessionStore(Protocol):
    async def open(self, *, current_user: EntityRef | None = None, view: ViewContext | None = None) -> SessionController: ...

    def get(self, session_id: str) -> SessionController: ...

    async def close(self, session_id: str) -> None: ...


class InMemorySessionStore:
    """Keeps one controller per open panel; closing removes it and clears its memory."""

    def __init__(self, dependencies: SessionDependencies) -> None:
        self.dependencies = dependencies
        self._sessions: dict[str, SessionController] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    async def open(
        self,
        *,
        current_user: EntityRef | None = None,
        view: ViewContext | None = None,
    ) -> SessionController:
        dependencies = self.dependencies
        if current_user is not None and current_user != dependencies.current_user:
            dependencies = SessionDependencies(
                intent=dependencies.intent,
                resolver=dependencies.resolver,
                executor=dependencies.executor,
                current_user=current_user,
                settings=dependencies.settings,
                recognizer_factory=dependencies.recognizer_factory,
                router_factory=dependencies.router_factory,
            )

        session: SessionController | None = None

        async def _close() -> None:
            if session is not None:
                await self.close(session.id)

        session = dependencies.build(on_close=_close, view=view)
        self._sessions[session.id] = session
        logger.info("Opened session %s for %s", session.id, session.current_user.name or "anonymous")
        return session

    def get(self, session_id: str) -> SessionController:
        try:
            return self._sessions[session_id]
        except KeyError as exc:
            raise SessionNotFoundError(f"Session {session_id} not found") from exc

    async def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        await session.close()

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close(session_id)


__all__ = ["InMemorySessionStore", "SessionNotFoundError", "SessionStore"]
