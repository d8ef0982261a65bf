"""Assistant session API routes."""

from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from ..actions.base import ActionNotFoundError, ActionStateError, ActionValidationError
from ..clients.base import CollaboratorError
from ..config import get_settings
from ..conversations import session_schemas as schemas
from ..conversations.models import EntityRef
from ..conversations.session import SessionController
from ..conversations.store import InMemorySessionStore, SessionNotFoundError
from ..dependencies import build_dependencies
from ..rate_limit import chat_rate_limit, limiter

router = APIRouter(prefix="/api/assistant/sessions", tags=["assistant-sessions"])


@lru_cache(maxsize=1)
def get_store() -> InMemorySessionStore:
    return InMemorySessionStore(build_dependencies(get_settings()))


def reset_store_cache() -> None:
    """Drop the cached store; useful in tests when settings change."""

    get_store.cache_clear()


@contextmanager
def _service_context() -> Iterator[None]:
    try:
        yield
    except (SessionNotFoundError, ActionNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ActionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ActionValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except CollaboratorError as exc:
        raise HTTPException(status_code=502, detail=exc.reason) from exc


def _session(store: InMemorySessionStore, session_id: str) -> SessionController:
    with _service_context():
        return store.get(session_id)


def _snapshot(session: SessionController) -> schemas.SessionSnapshot:
    return schemas.SessionSnapshot.from_session(session)


@router.post("", response_model=schemas.SessionSnapshot, status_code=201)
async def create_session(
    payload: schemas.SessionCreate | None = None,
    x_user_id: str | None = Header(default=None),
    x_user_name: str | None = Header(default=None),
    store: InMemorySessionStore = Depends(get_store),
) -> schemas.SessionSnapshot:
    """Open a session for the requesting user."""
    current_user = None
    if x_user_id or x_user_name:
        current_user = EntityRef(name=x_user_name or "", id=x_user_id or "")
    view = payload.view.to_view() if payload and payload.view else None
    session = await store.open(current_user=current_user, view=view)
    return _snapshot(session)


@router.get("/{session_id}", response_model=schemas.SessionSnapshot)
async def get_session(
    session_id: str, store: InMemorySessionStore = Depends(get_store)
) -> schemas.SessionSnapshot:
    """Return the current transcript, actions and notifications."""
    return _snapshot(_session(store, session_id))


@router.delete("/{session_id}")
async def close_session(session_id: str, store: InMemorySessionStore = Depends(get_store)) -> dict[str, str]:
    """Close a session, cancelling timers and clearing its context."""
    with _service_context():
        await store.close(session_id)
    return {"message": "Session closed"}


@router.post("/{session_id}/messages", response_model=schemas.SessionSnapshot)
@limiter.limit(chat_rate_limit)
async def post_message(
    request: Request,
    session_id: str,
    payload: schemas.MessageCreate,
    store: InMemorySessionStore = Depends(get_store),
) -> schemas.SessionSnapshot:
    """Submit one user turn.

    Rate-limited by client IP. Self-resolving actions the turn produces are
    settled before the snapshot is returned.
    """
    if len(payload.content) > get_settings().max_message_length:
        raise HTTPException(status_code=400, detail="Message too long")
    session = _session(store, session_id)
    if session.in_flight:
        raise HTTPException(status_code=409, detail="A message is already being processed")
    if not payload.content.strip():
        raise HTTPException(status_code=400, detail="Message is empty")
    with _service_context():
        await session.submit(payload.content)
        await session.settle()
    return _snapshot(session)


@router.put("/{session_id}/view", response_model=schemas.SessionSnapshot)
async def set_view(
    session_id: str,
    payload: schemas.ViewPayload,
    store: InMemorySessionStore = Depends(get_store),
) -> schemas.SessionSnapshot:
    """Tell the session which page the user is looking at."""
    session = _session(store, session_id)
    session.set_view(payload.to_view())
    return _snapshot(session)


@router.delete("/{session_id}/notifications", response_model=schemas.SessionSnapshot)
async def acknowledge_notifications(
    session_id: str, store: InMemorySessionStore = Depends(get_store)
) -> schemas.SessionSnapshot:
    """Drop the notifications the client has already shown."""
    session = _session(store, session_id)
    session.acknowledge_notifications()
    return _snapshot(session)


@router.get("/{session_id}/suggestions", response_model=list[schemas.SuggestionView])
async def list_suggestions(
    session_id: str, store: InMemorySessionStore = Depends(get_store)
) -> list[schemas.SuggestionView]:
    session = _session(store, session_id)
    return [schemas.SuggestionView.from_suggestion(item) for item in session.suggestions()]


@router.post("/{session_id}/suggestions/apply", response_model=schemas.SessionSnapshot)
@limiter.limit(chat_rate_limit)
async def apply_suggestion(
    request: Request,
    session_id: str,
    payload: schemas.SuggestionApply,
    store: InMemorySessionStore = Depends(get_store),
) -> schemas.SessionSnapshot:
    """Submit a self-contained suggestion, or pre-fill the input with a placeholder one."""
    session = _session(store, session_id)
    with _service_context():
        await session.apply_suggestion(payload.text)
        await session.settle()
    return _snapshot(session)


@router.post("/{session_id}/actions/{message_id}/confirm", response_model=schemas.SessionSnapshot)
async def confirm_action(
    session_id: str, message_id: str, store: InMemorySessionStore = Depends(get_store)
) -> schemas.SessionSnapshot:
    session = _session(store, session_id)
    with _service_context():
        await session.confirm_action(message_id)
    return _snapshot(session)


@router.post("/{session_id}/actions/{message_id}/dismiss", response_model=schemas.SessionSnapshot)
async def dismiss_action(
    session_id: str, message_id: str, store: InMemorySessionStore = Depends(get_store)
) -> schemas.SessionSnapshot:
    session = _session(store, session_id)
    with _service_context():
        session.dismiss_action(message_id)
    return _snapshot(session)


@router.patch("/{session_id}/actions/{message_id}", response_model=schemas.SessionSnapshot)
async def edit_action(
    session_id: str,
    message_id: str,
    payload: schemas.ActionEdit,
    store: InMemorySessionStore = Depends(get_store),
) -> schemas.SessionSnapshot:
    """Update editable fields of the live action card."""
    session = _session(store, session_id)
    with _service_context():
        session.edit_action(message_id, **payload.fields)
    return _snapshot(session)


@router.post(
    "/{session_id}/actions/{message_id}/bindings/{field}/select",
    response_model=schemas.SessionSnapshot,
)
async def select_candidate(
    session_id: str,
    message_id: str,
    field: str,
    payload: schemas.CandidateSelect,
    store: InMemorySessionStore = Depends(get_store),
) -> schemas.SessionSnapshot:
    """Bind an ambiguous entity to one of the offered candidates."""
    session = _session(store, session_id)
    with _service_context():
        session.select_candidate(message_id, field, payload.candidate_id)
    return _snapshot(session)


@router.post(
    "/{session_id}/actions/{message_id}/bindings/{field}/cancel",
    response_model=schemas.SessionSnapshot,
)
async def cancel_disambiguation(
    session_id: str,
    message_id: str,
    field: str,
    store: InMemorySessionStore = Depends(get_store),
) -> schemas.SessionSnapshot:
    """Abandon the pick and dismiss the whole action."""
    session = _session(store, session_id)
    with _service_context():
        session.cancel_disambiguation(message_id, field)
    return _snapshot(session)
