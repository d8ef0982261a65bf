"""Client for the business application's action endpoints and candidate lists."""

from __future__ import annotations

from typing import Any

from ..conversations.models import EntityKind
from ..resolution.matching import Candidate
from .base import ApiClient

CANDIDATE_PATHS = {
    EntityKind.CLIENT: "/api/clients",
    EntityKind.USER: "/api/staff",
    EntityKind.PERSON: "/api/people",
    EntityKind.TASK_TYPE: "/api/task-types",
    EntityKind.PROJECT: "/api/projects",
}


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _project_candidate(record: dict[str, Any]) -> Candidate:
    client = _text(record.get("clientName"))
    project_type = _text(record.get("projectTypeName"))
    label = " - ".join(part for part in (client, project_type) if part)
    return Candidate(
        id=str(record.get("id", "")),
        name=label or _text(record.get("description")) or "Unknown",
        company_id=_text(record.get("clientId")),
        company_name=client,
    )


def _is_open_project(record: dict[str, Any]) -> bool:
    return not record.get("completionStatus") and not record.get("inactive")


def candidate_from_record(kind: EntityKind, record: dict[str, Any]) -> Candidate:
    if kind is EntityKind.PROJECT:
        return _project_candidate(record)
    first = _text(record.get("firstName"))
    last = _text(record.get("lastName"))
    full = f"{first or ''} {last or ''}".strip()
    name = _text(record.get("name")) or _text(record.get("fullName")) or full or "Unknown"
    company_id = None
    company_name = None
    if kind is EntityKind.PERSON:
        companies = record.get("relatedCompanies") or []
        if companies and isinstance(companies[0], dict):
            company_id = _text(companies[0].get("id"))
            company_name = _text(companies[0].get("name"))
        company_id = company_id or _text(record.get("clientId"))
    return Candidate(
        id=str(record.get("id", "")),
        name=name,
        first_name=first,
        last_name=last,
        email=_text(record.get("email")) or _text(record.get("primaryEmail")),
        mobile=_text(record.get("telephone")) or _text(record.get("primaryPhone")),
        company_id=company_id,
        company_name=company_name,
    )


class ActionExecutionClient(ApiClient):
    """Executes confirmed actions, reads project data and lists candidates for local matching."""

    async def create_reminder(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.request("POST", "/api/internal-tasks", json=payload) or {}

    async def create_task(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.request("POST", "/api/internal-tasks", json=payload) or {}

    async def link_client(self, task_id: str, client_id: str) -> None:
        await self.request(
            "POST",
            f"/api/internal-tasks/{task_id}/connections",
            json={"connections": [{"entityType": "client", "entityId": client_id}]},
        )

    async def send_email(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.request("POST", "/api/email/send", json=payload) or {}

    async def send_sms(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.request("POST", "/api/sms/send", json=payload) or {}

    async def bench_project(self, project_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.request("POST", f"/api/projects/{project_id}/bench", json=payload) or {}

    async def unbench_project(self, project_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.request("POST", f"/api/projects/{project_id}/unbench", json=payload) or {}

    async def move_project_stage(self, project_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.request("PATCH", f"/api/projects/{project_id}/status", json=payload) or {}

    async def get_project_details(self, project_id: str) -> dict[str, Any]:
        """Project summary plus its workflow ``stages`` and ``nextStage``."""

        return await self.request("GET", f"/api/ai/projects/{project_id}/details") or {}

    async def list_stage_reasons(self, project_id: str, stage_id: str) -> list[dict[str, Any]]:
        payload = await self.request("GET", f"/api/ai/projects/{project_id}/stages/{stage_id}/reasons")
        if isinstance(payload, dict):
            payload = payload.get("reasons") or []
        return [reason for reason in payload or [] if isinstance(reason, dict)]

    async def get_analytics(self, params: dict[str, str]) -> dict[str, Any]:
        return await self.request("GET", "/api/ai/analytics", params=params) or {}

    async def list_candidates(self, kind: EntityKind) -> list[Candidate]:
        records = await self.request("GET", CANDIDATE_PATHS[kind])
        if isinstance(records, dict):
            records = records.get("items") or records.get("data") or []
        return [
            candidate_from_record(kind, record)
            for record in records or []
            if isinstance(record, dict)
            and record.get("id") is not None
            and (kind is not EntityKind.PROJECT or _is_open_project(record))
        ]


__all__ = ["ActionExecutionClient", "CANDIDATE_PATHS", "candidate_from_record"]
