import pathlib
import sys

import pytest
from fastapi import FastAPI, Request

sys.path.append(str(pathlib.Path(__file__).resolve().parent))
from actionchat.app_logging import init_logging
from actionchat.config import Settings, reset_settings_cache
from actionchat.conversations.models import EntityRef
from actionchat.conversations.session import SessionDependencies
from actionchat.resolution.matching import LocalEntityMatcher
from actionchat.resolution.service import EntityResolver
from fakes import FakeExecutor, FakeIntent, directory

CURRENT_USER = EntityRef(name="Alice Smith", id="u-alice")


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def app_factory(monkeypatch):
    def _create_app(log_dir: str, log_request_bodies: bool = False):
        """Create a FastAPI app with logging initialised."""
        monkeypatch.setenv("LOG_DIR", str(log_dir))
        if log_request_bodies:
            monkeypatch.setenv("LOG_REQUEST_BODIES", "true")
        app = FastAPI()

        @app.post("/echo")
        async def echo(request: Request):
            return await request.json()

        init_logging(app)
        return app

    return _create_app


@pytest.fixture
def settings() -> Settings:
    """Settings with near-zero delays so timers fire inside a test."""
    return Settings(auto_resolve_delay=0.0, voice_grace_delay=0.01, panel_close_delay=0.0)


@pytest.fixture
def resolver() -> EntityResolver:
    return EntityResolver(LocalEntityMatcher(directory()))


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def intent() -> FakeIntent:
    return FakeIntent()


@pytest.fixture
def deps(intent, resolver, executor, settings) -> SessionDependencies:
    return SessionDependencies(
        intent=intent,
        resolver=resolver,
        executor=executor,
        current_user=CURRENT_USER,
        settings=settings,
    )
