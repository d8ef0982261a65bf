"""Builds the collaborators a session needs from :class:`Settings`."""

from __future__ import annotations

import logging

from .clients.actions import ActionExecutionClient
from .clients.base import ApiCredentials
from .clients.intent import HttpIntentClient, IntentBackend
from .clients.resolution import HttpResolutionClient
from .clients.rules import RuleBasedIntentClient
from .config import Settings
from .conversations.models import EntityRef
from .conversations.session import SessionDependencies
from .resolution.matching import ConfidenceThresholds, LocalEntityMatcher
from .resolution.service import EntityResolver, ResolutionBackend

logger = logging.getLogger(__name__)


def thresholds_from_settings(settings: Settings) -> ConfidenceThresholds:
    return ConfidenceThresholds(
        high=settings.confidence_high,
        medium=settings.confidence_medium,
        low=settings.confidence_low,
        minimum=settings.confidence_minimum,
    )


def build_dependencies(settings: Settings, *, current_user: EntityRef | None = None) -> SessionDependencies:
    credentials = ApiCredentials(api_key=settings.api_key)
    thresholds = thresholds_from_settings(settings)
    executor = ActionExecutionClient(
        settings.actions_api_url, credentials=credentials, timeout=settings.timeout_seconds
    )

    intent: IntentBackend
    if settings.intent_backend == "rules":
        intent = RuleBasedIntentClient(timezone=settings.timezone)
    else:
        intent = HttpIntentClient(
            settings.intent_api_url, credentials=credentials, timeout=settings.timeout_seconds
        )

    backend: ResolutionBackend
    if settings.local_resolution:
        backend = LocalEntityMatcher(executor, thresholds=thresholds)
    else:
        backend = HttpResolutionClient(
            settings.resolution_api_url, credentials=credentials, timeout=settings.timeout_seconds
        )
    logger.info(
        "Assistant collaborators: intent=%s resolution=%s",
        settings.intent_backend,
        "local" if settings.local_resolution else "http",
    )
    return SessionDependencies(
        intent=intent,
        resolver=EntityResolver(backend, thresholds=thresholds),
        executor=executor,
        current_user=current_user or EntityRef(name=""),
        settings=settings,
    )


__all__ = ["build_dependencies", "thresholds_from_settings"]
