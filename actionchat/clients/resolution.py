"""Client for the remote entity-resolution collaborator."""

from __future__ import annotations

from pydantic import ValidationError

from ..conversations.models import EntityKind
from ..resolution.schemas import ResolutionResult
from .base import ApiClient, CollaboratorError


class HttpResolutionClient(ApiClient):
    """``GET {base}/{kind}?q=name`` returning ranked candidates."""

    async def resolve(
        self,
        name: str,
        kind: EntityKind,
        *,
        company: str | None = None,
        require_contact: str | None = None,
    ) -> ResolutionResult:
        params: dict[str, str] = {"q": name}
        if company:
            params["company"] = company
        if require_contact:
            params["require"] = require_contact
        payload = await self.request("GET", kind.value, params=params)
        try:
            return ResolutionResult.model_validate(payload or {})
        except ValidationError as exc:
            raise CollaboratorError(f"Malformed resolution response for {kind.value}") from exc


__all__ = ["HttpResolutionClient"]
