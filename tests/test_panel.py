import asyncio
from dataclasses import replace

import pytest

from actionchat.conversations.models import ActionTag, EntityRef, FunctionCall, ViewContext
from actionchat.conversations.panel import ChatPanel
from actionchat.conversations.store import InMemorySessionStore, SessionNotFoundError
from fakes import FakeRecognizerFactory, function_call


@pytest.fixture
def panel(deps):
    deps.recognizer_factory = FakeRecognizerFactory()
    return ChatPanel(deps)


def test_toggle_round_trip(panel):
    async def _run():
        assert await panel.toggle(ViewContext(page="home")) is True
        session = panel.session
        assert await panel.toggle() is False
        return session

    session = asyncio.run(_run())
    assert not panel.is_open
    assert session.closed


def test_reopening_starts_a_fresh_session(panel):
    async def _run():
        first = panel.open()
        first.memory.update(FunctionCall(name=ActionTag.NAVIGATE_TO_CLIENT, arguments={"clientName": "Acme"}))
        await panel.close()
        return first, panel.open()

    first, second = asyncio.run(_run())
    assert first is not second
    assert first.memory.context.is_empty()
    assert second.memory.context.is_empty()


def test_open_again_only_updates_view(panel):
    session = panel.open()
    again = panel.open(ViewContext.from_path("/clients/c-acme", client_name="Acme Corp"))
    assert again is session
    assert session.view.client_name == "Acme Corp"


def test_escape_stops_dictation_before_closing(panel):
    session = panel.open()
    session.voice.start()

    asyncio.run(panel.escape())
    assert panel.is_open
    assert not session.voice.listening

    asyncio.run(panel.escape())
    assert not panel.is_open
    assert session.closed


def test_escape_without_panel_is_a_no_op(panel):
    asyncio.run(panel.escape())
    assert not panel.is_open


def test_side_panel_closes_itself_after_confirm(deps, settings):
    deps.settings = replace(settings, panel_layout="side_panel")
    deps.intent.responses.append(
        function_call(ActionTag.CREATE_REMINDER, title="Call John", dateTime="2026-03-10T14:00:00Z")
    )
    panel = ChatPanel(deps)
    assert panel.layout == "side_panel"

    async def _run():
        session = panel.open()
        await session.submit("remind me")
        action = next(message for message in session.messages if message.function_call)
        await session.confirm_action(action.id)
        await asyncio.sleep(0.01)
        return session

    session = asyncio.run(_run())
    assert not panel.is_open
    assert session.closed


def test_store_open_get_close(deps):
    store = InMemorySessionStore(deps)

    async def _run():
        session = await store.open(current_user=EntityRef(name="Bob", id="u-bob"))
        assert session.id in store
        assert store.get(session.id) is session
        assert session.current_user.id == "u-bob"
        await store.close(session.id)
        return session

    session = asyncio.run(_run())
    assert len(store) == 0
    assert session.closed
    with pytest.raises(SessionNotFoundError):
        store.get(session.id)
    with pytest.raises(SessionNotFoundError):
        asyncio.run(store.close(session.id))


def test_store_close_all(deps):
    store = InMemorySessionStore(deps)

    async def _run():
        sessions = [await store.open(), await store.open()]
        await store.close_all()
        return sessions

    sessions = asyncio.run(_run())
    assert len(store) == 0
    assert all(session.closed for session in sessions)
