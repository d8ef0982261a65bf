from actionchat.conversations.models import ConversationContext, EntityRef, ViewContext
from actionchat.conversations.suggestions import DEFAULT_PHRASES, Suggestion, generate_suggestions


def _texts(suggestions):
    return [suggestion.text for suggestion in suggestions]


def test_defaults_without_view_or_memory():
    assert _texts(generate_suggestions(None, None)) == list(DEFAULT_PHRASES)


def test_viewed_person_wins_over_everything():
    view = ViewContext.from_path("/people/p-1", person_name="Mark Jones", client_name="Monkey Access")
    context = ConversationContext(last_mentioned_client=EntityRef(name="Acme Corp"))

    texts = _texts(generate_suggestions(view, context))
    assert texts[0] == "Email Mark Jones about "
    assert len(texts) == 3


def test_viewed_client_phrases():
    view = ViewContext.from_path("/clients/c-acme", client_name="Acme Corp")
    assert _texts(generate_suggestions(view, None))[0] == "Remind me to call Acme Corp tomorrow"


def test_page_type_phrases():
    view = ViewContext.from_path("/internal-tasks?tab=reminders")
    assert view.page == "reminders"
    assert "Show overdue reminders" in _texts(generate_suggestions(view, None))


def test_tasks_page_suggests_overdue_tasks():
    view = ViewContext.from_path("/internal-tasks?tab=tasks")
    assert view.page == "tasks"
    suggestions = generate_suggestions(view, None)
    assert _texts(suggestions)[0] == "Show overdue tasks"
    assert suggestions[0].submits


def test_memory_phrases_skip_entity_in_view():
    context = ConversationContext(
        last_mentioned_client=EntityRef(name="Acme Corp"),
        last_mentioned_person=EntityRef(name="Jane"),
    )
    texts = _texts(generate_suggestions(ViewContext(page="home"), context))
    assert texts == [
        "Go to Acme Corp",
        "Remind me to follow up with Acme Corp tomorrow",
        "Email Jane about ",
    ]


def test_never_more_than_three():
    context = ConversationContext(last_mentioned_client=EntityRef(name="Acme Corp"))
    assert len(generate_suggestions(None, context, limit=3)) <= 3


def test_placeholder_phrases_do_not_submit():
    assert Suggestion("Remind me to ").submits is False
    assert Suggestion("Email someone...").submits is False
    assert Suggestion("Show me my tasks").submits is True
