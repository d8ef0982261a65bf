"""Shared plumbing for the HTTP collaborators the assistant talks to."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin

import requests


class CollaboratorError(RuntimeError):
    """Raised when a collaborator cannot be reached or rejects a request."""

    def __init__(self, message: str, *, status_code: int | None = None, reason: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason or message


@dataclass(frozen=True)
class ApiCredentials:
    """Credentials attached to every collaborator request."""

    api_key: str | None = None
    extras: dict[str, str] = field(default_factory=dict)

    def as_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        headers.update(self.extras)
        return headers


def _error_reason(response: requests.Response | None) -> str | None:
    if response is None:
        return None
    try:
        payload = response.json()
    except ValueError:
        text = (getattr(response, "text", "") or "").strip()
        return text or None
    if isinstance(payload, dict):
        for key in ("message", "error", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


class ApiClient:
    """Blocking ``requests`` client whose calls are awaited off the event loop."""

    def __init__(
        self,
        base_url: str,
        *,
        session: requests.Session | None = None,
        credentials: ApiCredentials | None = None,
        timeout: float = 10.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.credentials = credentials or ApiCredentials()
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def url(self, path: str = "") -> str:
        if not path:
            return self.base_url
        if path.startswith("http"):
            return path
        return urljoin(self.base_url + "/", path.lstrip("/"))

    def send(self, method: str, path: str = "", **kwargs: Any) -> Any:
        url = self.url(path)
        headers = {**self.credentials.as_headers(), **kwargs.pop("headers", {})}
        try:
            response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.HTTPError as exc:
            reason = _error_reason(exc.response)
            status = exc.response.status_code if exc.response is not None else None
            self.logger.warning("%s %s failed with %s: %s", method, url, status, reason)
            raise CollaboratorError(
                f"{method} {url} failed with status {status}", status_code=status, reason=reason
            ) from exc
        except requests.RequestException as exc:
            self.logger.warning("%s %s unreachable: %s", method, url, exc)
            raise CollaboratorError(f"{method} {url} unreachable: {exc}") from exc

        if response.status_code == 204:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def request(self, method: str, path: str = "", **kwargs: Any) -> Any:
        return await asyncio.to_thread(self.send, method, path, **kwargs)


__all__ = ["ApiClient", "ApiCredentials", "CollaboratorError"]
