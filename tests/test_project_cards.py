import asyncio

import pytest

from actionchat.actions.base import ActionValidationError, CardContext, CardOutcome, RecordingRouter
from actionchat.actions.cards import pick_reason, pick_stage
from actionchat.actions.registry import create_card
from actionchat.clients.base import CollaboratorError
from actionchat.conversations.models import ActionStatus, ActionTag, EntityRef, FunctionCall
from fakes import STAGES

CURRENT_USER = EntityRef(name="Alice Smith", id="u-alice")


@pytest.fixture
def context(resolver, executor):
    return CardContext(
        resolver=resolver,
        executor=executor,
        router=RecordingRouter(),
        current_user=CURRENT_USER,
    )


def _card(context, tag: ActionTag, **arguments):
    card = create_card("msg-1", FunctionCall(name=tag, arguments=arguments), context)
    asyncio.run(card.prepare())
    return card


def test_pick_stage_and_reason():
    details = {"stages": STAGES, "nextStage": STAGES[1]}
    assert pick_stage(details, "")["id"] == "st-prep"
    assert pick_stage(details, "Next")["id"] == "st-prep"
    assert pick_stage(details, "review")["id"] == "st-review"
    assert pick_stage(details, "Filing") is None
    assert pick_stage({"stages": STAGES}, "next") is None

    reasons = [{"id": "r-1", "name": "Ready for review"}, {"id": "r-2", "name": "Urgent sign-off"}]
    assert pick_reason(reasons, "urgent")["id"] == "r-2"
    assert pick_reason(reasons, "") is None
    assert pick_reason(reasons[:1], "")["id"] == "r-1"


def test_project_status_shows_details_and_opens_project(context, executor):
    card = _card(context, ActionTag.GET_PROJECT_STATUS, projectIdentifier="Acme VAT")
    assert card.bindings["project"].match_id == "pr-acme-vat"
    assert card.fields["current_status"] == "Awaiting Documents"
    assert card.fields["next_stage"] == "In Preparation"
    assert card.fields["due_date"] == "2026-04-07"
    assert card.fields["is_benched"] is False

    event = asyncio.run(card.confirm())
    assert event.outcome is CardOutcome.COMPLETED
    assert event.summary == "Viewing project: Acme Corp"
    assert event.notification is None
    assert context.router.paths == ["/projects/pr-acme-vat"]
    assert executor.calls == []


def test_project_status_takes_best_candidate_without_asking(context):
    card = _card(context, ActionTag.GET_PROJECT_STATUS, projectIdentifier="Acme")
    assert card.bindings["project"].match_id == "pr-acme-vat"
    assert card.disambiguations() == {}


def test_project_status_survives_detail_failure(context, executor):
    executor.failures["get_project_details"] = CollaboratorError("down")
    card = _card(context, ActionTag.GET_PROJECT_STATUS, projectIdentifier="Monkey payroll")
    assert card.fields == {}

    event = asyncio.run(card.confirm())
    assert event.summary == "Viewing project: Monkey Access"


def test_unknown_project_reports_not_found(context):
    card = _card(context, ActionTag.GET_PROJECT_STATUS, projectIdentifier="Nowhere Ltd")
    assert card.bindings["project"].not_found
    with pytest.raises(ActionValidationError) as excinfo:
        asyncio.run(card.confirm())
    assert str(excinfo.value) == 'No project found matching "Nowhere Ltd"'
    assert excinfo.value.title == "Not found"


def test_bench_project(context, executor):
    card = _card(context, ActionTag.BENCH_PROJECT, projectIdentifier="Acme VAT", benchReason="missing_data")
    event = asyncio.run(card.confirm())

    assert event.outcome is CardOutcome.COMPLETED
    assert event.summary == "Benched: Acme Corp"
    assert event.notification.title == "Project benched"
    assert event.notification.description == "Acme Corp - VAT Return moved to bench"
    assert executor.calls_to("bench_project") == [("pr-acme-vat", {"benchReason": "missing_data"})]


def test_bench_reason_is_required_and_other_needs_text(context, executor):
    card = _card(context, ActionTag.BENCH_PROJECT, projectIdentifier="Acme VAT")
    assert card.missing_fields() == ["bench_reason"]
    with pytest.raises(ActionValidationError) as excinfo:
        asyncio.run(card.confirm())
    assert str(excinfo.value) == "Please select a reason for benching"

    card.edit(bench_reason="Other")
    assert card.fields["bench_reason"] == "other"
    assert card.missing_fields() == ["bench_reason_other_text"]

    card.edit(bench_reason_other_text="Client on holiday")
    asyncio.run(card.confirm())
    assert executor.calls_to("bench_project") == [
        ("pr-acme-vat", {"benchReason": "other", "benchReasonOtherText": "Client on holiday"})
    ]


def test_already_benched_project_is_refused(context, executor):
    executor.projects["pr-acme-vat"]["isBenched"] = True
    card = _card(context, ActionTag.BENCH_PROJECT, projectIdentifier="Acme VAT", benchReason="legacy_work")
    assert card.fields["is_benched"] is True

    with pytest.raises(ActionValidationError) as excinfo:
        asyncio.run(card.confirm())
    assert str(excinfo.value) == "This project is already on the bench"
    assert card.status is ActionStatus.PENDING
    assert executor.calls_to("bench_project") == []


def test_bench_failure_keeps_card_pending(context, executor):
    executor.failures["bench_project"] = CollaboratorError("rejected", reason="Project is locked")
    card = _card(context, ActionTag.BENCH_PROJECT, projectIdentifier="Acme VAT", benchReason="legacy_work")

    event = asyncio.run(card.confirm())
    assert event.outcome is CardOutcome.FAILED
    assert event.notification.title == "Failed to bench project"
    assert event.notification.description == "Project is locked"
    assert card.status is ActionStatus.PENDING


def test_ambiguous_project_needs_a_pick_before_benching(context, executor):
    card = _card(context, ActionTag.BENCH_PROJECT, projectIdentifier="Acme", benchReason="missing_data")
    assert set(card.disambiguations()) == {"project"}
    with pytest.raises(ActionValidationError) as excinfo:
        asyncio.run(card.confirm())
    assert str(excinfo.value) == "Please choose which project you mean"

    card.select_candidate("project", "pr-acme-books")
    asyncio.run(card.confirm())
    assert executor.calls_to("bench_project")[0][0] == "pr-acme-books"


def test_unbench_project(context, executor):
    executor.projects["pr-acme-vat"]["isBenched"] = True
    card = _card(context, ActionTag.UNBENCH_PROJECT, projectIdentifier="Acme VAT", notes="Docs arrived")

    event = asyncio.run(card.confirm())
    assert event.summary == "Unbenched: Acme Corp"
    assert event.notification.title == "Project unbenched"
    assert event.notification.description == "Acme Corp - VAT Return removed from bench"
    assert executor.calls_to("unbench_project") == [("pr-acme-vat", {"notes": "Docs arrived"})]


def test_unbench_requires_a_benched_project(context, executor):
    card = _card(context, ActionTag.UNBENCH_PROJECT, projectIdentifier="Acme VAT")
    with pytest.raises(ActionValidationError) as excinfo:
        asyncio.run(card.confirm())
    assert str(excinfo.value) == "This project is not on the bench"
    assert executor.calls_to("unbench_project") == []


def test_move_to_next_stage_with_single_reason(context, executor):
    card = _card(context, ActionTag.MOVE_PROJECT_STAGE, projectIdentifier="Monkey payroll")
    assert card.fields["stage"] == "In Preparation"

    event = asyncio.run(card.confirm())
    assert event.summary == "Moved: Monkey Access to In Preparation"
    assert event.notification.title == "Stage updated"
    assert event.notification.description == 'Monkey Access moved to "In Preparation"'
    assert executor.calls_to("move_project_stage") == [
        (
            "pr-monkey-payroll",
            {
                "newStatus": "In Preparation",
                "stageId": "st-prep",
                "reasonId": "r-docs-in",
                "changeReason": "Documents received",
            },
        )
    ]


def test_move_stage_asks_for_reason_when_several_apply(context, executor):
    card = _card(context, ActionTag.MOVE_PROJECT_STAGE, projectIdentifier="Acme VAT", targetStageName="review")
    assert card.fields["stage"] == "Manager Review"

    with pytest.raises(ActionValidationError) as excinfo:
        asyncio.run(card.confirm())
    assert excinfo.value.missing == ("reason",)

    card.edit(reason="urgent", notes="Client chasing")
    asyncio.run(card.confirm())
    _, payload = executor.calls_to("move_project_stage")[0]
    assert payload["stageId"] == "st-review"
    assert payload["reasonId"] == "r-urgent"
    assert payload["changeReason"] == "Urgent sign-off"
    assert payload["notes"] == "Client chasing"


def test_move_stage_rejects_unknown_stage_and_benched_projects(context, executor):
    card = _card(context, ActionTag.MOVE_PROJECT_STAGE, projectIdentifier="Acme VAT", targetStageName="Filing")
    with pytest.raises(ActionValidationError) as excinfo:
        asyncio.run(card.confirm())
    assert str(excinfo.value) == 'No stage matching "Filing"'

    executor.projects["pr-acme-vat"]["isBenched"] = True
    card = _card(context, ActionTag.MOVE_PROJECT_STAGE, projectIdentifier="Acme VAT")
    with pytest.raises(ActionValidationError) as excinfo:
        asyncio.run(card.confirm())
    assert excinfo.value.title == "On the bench"
    assert executor.calls_to("move_project_stage") == []


def test_move_stage_failure_uses_move_title(context, executor):
    executor.failures["move_project_stage"] = CollaboratorError("rejected", reason="Stage is locked")
    card = _card(context, ActionTag.MOVE_PROJECT_STAGE, projectIdentifier="Monkey payroll")

    event = asyncio.run(card.confirm())
    assert event.outcome is CardOutcome.FAILED
    assert event.notification.title == "Failed to move project"


def test_analytics_loads_summary_and_opens_filtered_projects(context, executor):
    card = _card(context, ActionTag.GET_ANALYTICS, queryType="overdue_count", projectTypeName="VAT")
    assert executor.calls_to("get_analytics") == [{"queryType": "overdue_count", "projectTypeName": "VAT"}]
    assert card.fields["title"] == "Overdue Projects"
    assert card.fields["summary"] == "2 projects overdue"
    assert len(card.fields["items"]) == 2

    event = asyncio.run(card.confirm())
    assert event.summary == "Viewing overdue count analytics"
    assert context.router.paths == ["/projects?filter=overdue&type=VAT"]


def test_analytics_normalises_arguments(context, executor):
    card = _card(context, ActionTag.GET_ANALYTICS, queryType="whatever", timeframe="This Month", userName="me")
    assert card.fields["query_type"] == "project_summary"
    assert executor.calls_to("get_analytics") == [
        {"queryType": "project_summary", "userName": "me", "timeframe": "this_month"}
    ]

    asyncio.run(card.confirm())
    assert context.router.paths == ["/projects"]


def test_analytics_failure_is_shown_on_the_card(context, executor):
    executor.failures["get_analytics"] = CollaboratorError("down")
    card = _card(context, ActionTag.GET_ANALYTICS, queryType="bench_count")
    assert card.fields["summary"] == "Unable to load analytics data. Try again later."

    asyncio.run(card.confirm())
    assert context.router.paths == ["/projects?filter=benched"]
