"""Client for the natural-language intent collaborator."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from pydantic import ValidationError

from ..conversations.schemas import IntentRequest, IntentResponse
from .base import ApiClient

logger = logging.getLogger(__name__)


class IntentBackend(Protocol):
    async def send(self, request: IntentRequest) -> IntentResponse: ...


def parse_intent_response(payload: Any) -> IntentResponse:
    """Validate a raw response; malformed shapes degrade to an empty plain message."""

    try:
        return IntentResponse.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Discarding malformed intent response: %s", exc.errors()[:3])
        return IntentResponse(type="message")


class HttpIntentClient(ApiClient):
    """POSTs one turn to the intent endpoint and returns its tagged response."""

    async def send(self, request: IntentRequest) -> IntentResponse:
        payload = await self.request("POST", json=request.to_wire())
        return parse_intent_response(payload)


__all__ = ["HttpIntentClient", "IntentBackend", "parse_intent_response"]
