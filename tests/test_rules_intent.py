import asyncio
import datetime as dt

import pytest

from actionchat.clients.rules import RuleBasedIntentClient, extract_when
from actionchat.conversations.schemas import (
    ConversationContextPayload,
    CurrentViewContextPayload,
    EntityRefPayload,
    IntentRequest,
)

# Monday 9 March 2026, before the clocks change, so London is on UTC.
NOW = dt.datetime(2026, 3, 9, 10, 0, tzinfo=dt.timezone.utc)


@pytest.fixture
def client():
    return RuleBasedIntentClient(timezone="Europe/London", clock=lambda: NOW)


def _call(client, message, **request_fields):
    response = client.interpret(IntentRequest(message=message, **request_fields))
    assert response.type == "function_call", response
    return response.function_call.name, response.function_call.arguments


def test_reminder_with_day_and_time(client):
    name, args = _call(client, "Remind me to call John tomorrow at 2pm")
    assert name == "create_reminder"
    assert args == {
        "title": "Call John",
        "dateTime": "2026-03-10T14:00:00+00:00",
        "assigneeName": "me",
    }


def test_reminder_picks_up_client_suffix(client):
    _, args = _call(client, "remind me to follow up on the quote next Friday for Acme Corp")
    assert args["title"] == "Follow up on the quote"
    assert args["clientName"] == "Acme Corp"
    assert args["dateTime"] == "2026-03-13T09:00:00+00:00"


def test_reminder_uses_viewed_client(client):
    view = CurrentViewContextPayload(client_id="c-acme", client_name="Acme Corp")
    _, args = _call(client, "remind me to send the contract", current_view_context=view)
    assert args["clientName"] == "Acme Corp"
    assert "dateTime" not in args


def test_task_with_type_assignee_priority_and_due_date(client):
    name, args = _call(client, "Create a call task for Vic to chase the invoice tomorrow, high priority")
    assert name == "create_task"
    assert args == {
        "title": "Chase the invoice",
        "assigneeName": "Vic",
        "priority": "high",
        "dueDate": "2026-03-10",
        "taskTypeName": "call",
    }


def test_email_with_company(client):
    name, args = _call(client, "Email Mark from Monkey Access about the renewal")
    assert name == "send_email"
    assert args == {"recipientName": "Mark", "clientName": "Monkey Access", "subject": "The renewal"}


def test_email_pronoun_uses_viewed_person(client):
    view = CurrentViewContextPayload(person_id="p-jane", person_name="Jane Doe", client_name="Acme Corp")
    _, args = _call(client, "email him about the invoice", current_view_context=view)
    assert args["recipientName"] == "Jane Doe"
    assert args["clientName"] == "Acme Corp"


def test_sms_message(client):
    name, args = _call(client, "text Mark saying running late")
    assert name == "send_sms"
    assert args == {"recipientName": "Mark", "message": "Running late"}


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("show me my open tasks", ("show_tasks", {"status": "open", "assigneeName": "me"})),
        ("list tasks", ("show_tasks", {"status": "all", "assigneeName": "me"})),
        ("Show overdue tasks", ("show_tasks", {"status": "overdue", "assigneeName": "me"})),
        ("show overdue reminders", ("show_reminders", {"timeframe": "overdue"})),
        ("show me this week's reminders", ("show_reminders", {"timeframe": "this_week"})),
        ("search clients for north", ("search_clients", {"searchTerm": "north"})),
        ("go to Acme", ("navigate_to_client", {"clientName": "Acme"})),
        ("What's the status of Acme VAT?", ("get_project_status", {"projectIdentifier": "Acme VAT"})),
        (
            "bench Acme VAT for missing data",
            ("bench_project", {"projectIdentifier": "Acme VAT", "benchReason": "missing_data"}),
        ),
        ("unbench Monkey payroll", ("unbench_project", {"projectIdentifier": "Monkey payroll"})),
        (
            "move Acme VAT to the next stage",
            ("move_project_stage", {"projectIdentifier": "Acme VAT", "targetStageName": "next"}),
        ),
        (
            "How many VAT projects are overdue?",
            ("get_analytics", {"queryType": "overdue_count", "projectTypeName": "VAT"}),
        ),
        ("how many projects are on the bench", ("get_analytics", {"queryType": "bench_count"})),
    ],
)
def test_simple_commands(client, message, expected):
    assert _call(client, message) == expected


def test_pronouns_fall_back_to_conversation_context(client):
    context = ConversationContextPayload(
        last_mentioned_client=EntityRefPayload(name="Monkey Access"),
        last_mentioned_person=EntityRefPayload(name="Mark"),
    )
    assert _call(client, "open it", conversation_context=context) == (
        "navigate_to_client",
        {"clientName": "Monkey Access"},
    )
    assert _call(client, "go to Mark", conversation_context=context) == (
        "navigate_to_person",
        {"personName": "Mark"},
    )


def test_greeting_and_unknown_text(client):
    greeting = client.interpret(IntentRequest(message="hello"))
    assert greeting.type == "message"

    unknown = asyncio.run(client.send(IntentRequest(message="what is the meaning of life")))
    assert unknown.type == "clarification"
    assert unknown.suggestions == ["Show me my tasks", "Remind me to ", "Show overdue reminders"]


def test_extract_when():
    now = NOW
    assert extract_when("call John", now) == (None, "call John")

    moment, rest = extract_when("call John tonight", now)
    assert (moment.date(), moment.hour, rest) == (dt.date(2026, 3, 9), 20, "call John")

    moment, _ = extract_when("pay rent on Monday", now)
    assert moment.date() == dt.date(2026, 3, 16)

    moment, _ = extract_when("standup at 12am", now)
    assert (moment.hour, moment.minute) == (0, 0)

    moment, _ = extract_when("review next week at 9:30", now)
    assert (moment.date(), moment.hour, moment.minute) == (dt.date(2026, 3, 16), 9, 30)
