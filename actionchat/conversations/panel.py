"""Keyboard surface of the assistant panel.

The panel owns whether a session is open.  ``toggle`` is bound to the global
shortcut; ``escape`` stops dictation first and only closes the panel when no
capture is running.
"""

from __future__ import annotations

import logging

from .models import ViewContext
from .session import SessionController, SessionDependencies

logger = logging.getLogger(__name__)


class ChatPanel:
    def __init__(self, dependencies: SessionDependencies) -> None:
        self.dependencies = dependencies
        self.session: SessionController | None = None

    @property
    def is_open(self) -> bool:
        return self.session is not None

    @property
    def layout(self) -> str:
        return self.dependencies.settings.panel_layout

    def open(self, view: ViewContext | None = None) -> SessionController:
        if self.session is None:
            self.session = self.dependencies.build(on_close=self.close, view=view)
            logger.debug("Assistant panel opened (session %s)", self.session.id)
        elif view is not None:
            self.session.set_view(view)
        return self.session

    async def close(self) -> None:
        session, self.session = self.session, None
        if session is not None:
            await session.close()
            logger.debug("Assistant panel closed (session %s)", session.id)

    async def toggle(self, view: ViewContext | None = None) -> bool:
        """Open or close the panel; returns whether it is open afterwards."""

        if self.session is not None:
            await self.close()
            return False
        self.open(view)
        return True

    async def escape(self) -> None:
        session = self.session
        if session is None:
            return
        if session.voice.listening:
            session.voice.cancel()
            return
        await self.close()


__all__ = ["ChatPanel"]
