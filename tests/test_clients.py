from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import pytest
import requests

from actionchat.clients.actions import ActionExecutionClient, candidate_from_record
from actionchat.clients.base import ApiClient, ApiCredentials, CollaboratorError
from actionchat.clients.intent import HttpIntentClient, parse_intent_response
from actionchat.clients.resolution import HttpResolutionClient
from actionchat.conversations.models import ActionTag, EntityKind
from actionchat.conversations.schemas import IntentRequest


class _FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code
        self.text = "" if payload is None else str(payload)

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class _FakeSession:
    def __init__(self, responses: List[_FakeResponse | Exception]):
        self._responses = responses
        self.requests: List[Dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> _FakeResponse:
        self.requests.append({"method": method, "url": url, **kwargs})
        if not self._responses:
            raise AssertionError("no more responses queued")
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def test_requests_carry_credentials_and_timeout():
    session = _FakeSession([_FakeResponse({"ok": True})])
    client = ApiClient(
        "https://app.example.com/",
        session=session,
        credentials=ApiCredentials(api_key="secret", extras={"X-Tenant": "t1"}),
        timeout=3.0,
    )

    assert asyncio.run(client.request("GET", "/api/clients")) == {"ok": True}
    sent = session.requests[0]
    assert sent["url"] == "https://app.example.com/api/clients"
    assert sent["headers"]["Authorization"] == "Bearer secret"
    assert sent["headers"]["X-Tenant"] == "t1"
    assert sent["timeout"] == 3.0


def test_http_error_keeps_server_reason():
    session = _FakeSession([_FakeResponse({"message": "Title already used"}, status_code=422)])
    client = ApiClient("https://app.example.com", session=session)

    with pytest.raises(CollaboratorError) as excinfo:
        asyncio.run(client.request("POST", "/api/internal-tasks", json={}))
    assert excinfo.value.status_code == 422
    assert excinfo.value.reason == "Title already used"


def test_unreachable_collaborator_raises():
    session = _FakeSession([requests.ConnectionError("refused")])
    client = ApiClient("https://app.example.com", session=session)

    with pytest.raises(CollaboratorError) as excinfo:
        asyncio.run(client.request("GET"))
    assert excinfo.value.status_code is None
    assert "unreachable" in excinfo.value.reason


def test_empty_bodies_return_none():
    session = _FakeSession([_FakeResponse(status_code=204), _FakeResponse(status_code=200)])
    client = ApiClient("https://app.example.com", session=session)
    assert asyncio.run(client.request("POST", "/a")) is None
    assert asyncio.run(client.request("POST", "/b")) is None


def test_intent_client_posts_camel_case_turn():
    reply = {
        "type": "function_call",
        "functionCall": {"name": "create_task", "arguments": {"title": "Quote"}},
    }
    session = _FakeSession([_FakeResponse(reply)])
    client = HttpIntentClient("https://app.example.com/api/ai/process-intent", session=session)
    request = IntentRequest(message="create a task", conversation_history=[])

    response = asyncio.run(client.send(request))
    sent = session.requests[0]
    assert sent["method"] == "POST"
    assert sent["url"] == "https://app.example.com/api/ai/process-intent"
    assert sent["json"] == {"message": "create a task", "conversationHistory": []}
    call = response.function_call.to_call()
    assert call.name is ActionTag.CREATE_TASK
    assert call.arg("title") == "Quote"


def test_malformed_intent_response_degrades_to_message():
    assert parse_intent_response("not an object").type == "message"
    assert parse_intent_response({"type": "message", "suggestions": "nope"}).message is None


def test_resolution_client_query_parameters():
    payload = {
        "matches": [{"id": "p-1", "name": "Mark Jones", "confidence": 0.86, "matchType": "exact"}],
        "requiresDisambiguation": False,
        "bestMatch": {"id": "p-1", "name": "Mark Jones", "confidence": 0.86, "matchType": "exact"},
    }
    session = _FakeSession([_FakeResponse(payload)])
    client = HttpResolutionClient("https://app.example.com/api/ai/resolve", session=session)

    result = asyncio.run(client.resolve("Mark", EntityKind.PERSON, company="Monkey Access", require_contact="email"))
    sent = session.requests[0]
    assert sent["url"] == "https://app.example.com/api/ai/resolve/person"
    assert sent["params"] == {"q": "Mark", "company": "Monkey Access", "require": "email"}
    assert result.top().id == "p-1"


def test_malformed_resolution_response_raises():
    session = _FakeSession([_FakeResponse({"matches": [{"name": "no id"}]})])
    client = HttpResolutionClient("https://app.example.com/api/ai/resolve", session=session)
    with pytest.raises(CollaboratorError):
        asyncio.run(client.resolve("x", EntityKind.CLIENT))


def test_link_client_payload():
    session = _FakeSession([_FakeResponse(status_code=204)])
    client = ActionExecutionClient("https://app.example.com", session=session)

    asyncio.run(client.link_client("task-1", "c-acme"))
    sent = session.requests[0]
    assert sent["url"] == "https://app.example.com/api/internal-tasks/task-1/connections"
    assert sent["json"] == {"connections": [{"entityType": "client", "entityId": "c-acme"}]}


def test_list_candidates_reads_wrapped_lists():
    records = {
        "items": [
            {
                "id": 7,
                "firstName": "Mark",
                "lastName": "Jones",
                "primaryEmail": "mark@monkey.example",
                "telephone": " ",
                "relatedCompanies": [{"id": "c-monkey", "name": "Monkey Access"}],
            },
            {"name": "no id"},
        ]
    }
    session = _FakeSession([_FakeResponse(records)])
    client = ActionExecutionClient("https://app.example.com", session=session)

    (person,) = asyncio.run(client.list_candidates(EntityKind.PERSON))
    assert session.requests[0]["url"] == "https://app.example.com/api/people"
    assert person.id == "7"
    assert person.full_name == "Mark Jones"
    assert person.email == "mark@monkey.example"
    assert person.mobile is None
    assert person.company_name == "Monkey Access"


def test_candidate_from_client_record():
    candidate = candidate_from_record(EntityKind.CLIENT, {"id": "c-1", "name": " Acme Corp "})
    assert candidate.name == "Acme Corp"
    assert candidate.company_name is None


def test_project_mutation_endpoints():
    session = _FakeSession([_FakeResponse({"id": "pr-1"}), _FakeResponse(None, 204), _FakeResponse({"id": "pr-1"})])
    client = ActionExecutionClient("https://app.example.com", session=session)

    asyncio.run(client.bench_project("pr-1", {"benchReason": "missing_data"}))
    asyncio.run(client.unbench_project("pr-1", {"notes": "Docs in"}))
    asyncio.run(client.move_project_stage("pr-1", {"stageId": "st-2", "newStatus": "Review"}))

    assert [(sent["method"], sent["url"]) for sent in session.requests] == [
        ("POST", "https://app.example.com/api/projects/pr-1/bench"),
        ("POST", "https://app.example.com/api/projects/pr-1/unbench"),
        ("PATCH", "https://app.example.com/api/projects/pr-1/status"),
    ]
    assert session.requests[0]["json"] == {"benchReason": "missing_data"}
    assert session.requests[2]["json"]["stageId"] == "st-2"


def test_project_reads():
    session = _FakeSession(
        [
            _FakeResponse({"id": "pr-1", "nextStage": {"id": "st-2", "name": "Review"}}),
            _FakeResponse({"reasons": [{"id": "r-1", "name": "Ready"}, "junk"]}),
            _FakeResponse({"title": "Overdue Projects", "summary": "2 projects overdue"}),
        ]
    )
    client = ActionExecutionClient("https://app.example.com", session=session)

    details = asyncio.run(client.get_project_details("pr-1"))
    reasons = asyncio.run(client.list_stage_reasons("pr-1", "st-2"))
    analytics = asyncio.run(client.get_analytics({"queryType": "overdue_count"}))

    assert details["nextStage"]["name"] == "Review"
    assert reasons == [{"id": "r-1", "name": "Ready"}]
    assert analytics["summary"] == "2 projects overdue"
    assert session.requests[0]["url"] == "https://app.example.com/api/ai/projects/pr-1/details"
    assert session.requests[1]["url"] == "https://app.example.com/api/ai/projects/pr-1/stages/st-2/reasons"
    assert session.requests[2]["url"] == "https://app.example.com/api/ai/analytics"
    assert session.requests[2]["params"] == {"queryType": "overdue_count"}


def test_project_candidates_skip_closed_projects():
    records = [
        {"id": "pr-1", "clientName": "Acme Corp", "projectTypeName": "VAT Return", "clientId": "c-acme"},
        {"id": "pr-2", "clientName": "Acme Corp", "projectTypeName": "Payroll", "completionStatus": "completed"},
        {"id": "pr-3", "clientName": "Acme Corp", "projectTypeName": "Accounts", "inactive": True},
    ]
    session = _FakeSession([_FakeResponse(records)])
    client = ActionExecutionClient("https://app.example.com", session=session)

    (project,) = asyncio.run(client.list_candidates(EntityKind.PROJECT))
    assert session.requests[0]["url"] == "https://app.example.com/api/projects"
    assert project.name == "Acme Corp - VAT Return"
    assert project.company_name == "Acme Corp"
    assert project.company_id == "c-acme"
