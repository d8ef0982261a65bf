"""Runtime configuration for the assistant service.

Values come from the process environment (``.env`` files are loaded by
``actionchat.main`` through python-dotenv before the first lookup).  Delays are
configured in milliseconds and exposed in seconds so the asyncio timers can use
them directly.
"""

from __future__ import annotations

import dataclasses
import os
from functools import lru_cache

LAYOUTS = ("inline", "side_panel")
INTENT_BACKENDS = ("http", "rules")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return float(value)


def _env_ms(name: str, default_ms: int) -> float:
    return _env_float(name, float(default_ms)) / 1000.0


@dataclasses.dataclass(frozen=True)
class Settings:
    """Assistant settings resolved from the environment."""

    intent_api_url: str = "http://localhost:3000/api/ai/process-intent"
    resolution_api_url: str = "http://localhost:3000/api/ai/resolve"
    actions_api_url: str = "http://localhost:3000"
    api_key: str | None = None
    timeout_seconds: float = 10.0
    intent_backend: str = "http"
    auto_resolve_delay: float = 0.4
    voice_grace_delay: float = 0.5
    panel_close_delay: float = 1.5
    voice_lang: str = "en-GB"
    panel_layout: str = "inline"
    timezone: str = "Europe/London"
    max_message_length: int = 5000
    chat_rate_limit: str = "30/minute"
    confidence_high: float = 0.9
    confidence_medium: float = 0.7
    confidence_low: float = 0.5
    confidence_minimum: float = 0.3
    local_resolution: bool = False

    @property
    def side_panel(self) -> bool:
        return self.panel_layout == "side_panel"

    def public_view(self) -> dict[str, object]:
        """Settings that are safe to expose to the front end."""

        return {
            "intentBackend": self.intent_backend,
            "panelLayout": self.panel_layout,
            "voiceLang": self.voice_lang,
            "maxMessageLength": self.max_message_length,
            "autoResolveDelayMs": int(self.auto_resolve_delay * 1000),
            "panelCloseDelayMs": int(self.panel_close_delay * 1000),
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from the environment with development defaults."""

    defaults = Settings()
    layout = os.getenv("PANEL_LAYOUT", defaults.panel_layout).strip().lower()
    if layout not in LAYOUTS:
        raise RuntimeError(f"PANEL_LAYOUT must be one of {', '.join(LAYOUTS)}; got {layout!r}.")
    backend = os.getenv("INTENT_BACKEND", defaults.intent_backend).strip().lower()
    if backend not in INTENT_BACKENDS:
        raise RuntimeError(
            f"INTENT_BACKEND must be one of {', '.join(INTENT_BACKENDS)}; got {backend!r}."
        )
    return Settings(
        intent_api_url=os.getenv("INTENT_API_URL", defaults.intent_api_url),
        resolution_api_url=os.getenv("RESOLUTION_API_URL", defaults.resolution_api_url),
        actions_api_url=os.getenv("ACTIONS_API_URL", defaults.actions_api_url),
        api_key=os.getenv("ASSISTANT_API_KEY") or None,
        timeout_seconds=_env_float("ASSISTANT_TIMEOUT_SECONDS", defaults.timeout_seconds),
        intent_backend=backend,
        auto_resolve_delay=_env_ms("AUTO_RESOLVE_DELAY_MS", 400),
        voice_grace_delay=_env_ms("VOICE_GRACE_DELAY_MS", 500),
        panel_close_delay=_env_ms("PANEL_CLOSE_DELAY_MS", 1500),
        voice_lang=os.getenv("VOICE_LANG", defaults.voice_lang),
        panel_layout=layout,
        timezone=os.getenv("ASSISTANT_TIMEZONE", defaults.timezone),
        max_message_length=int(os.getenv("CHAT_MAX_MESSAGE_LENGTH", str(defaults.max_message_length))),
        chat_rate_limit=os.getenv("CHAT_RATE_LIMIT", defaults.chat_rate_limit),
        confidence_high=_env_float("CONFIDENCE_HIGH", defaults.confidence_high),
        confidence_medium=_env_float("CONFIDENCE_MEDIUM", defaults.confidence_medium),
        confidence_low=_env_float("CONFIDENCE_LOW", defaults.confidence_low),
        confidence_minimum=_env_float("CONFIDENCE_MINIMUM", defaults.confidence_minimum),
        local_resolution=_env_bool("LOCAL_RESOLUTION", defaults.local_resolution),
    )


def reset_settings_cache() -> None:
    """Clear cached settings; useful in tests when env vars change."""

    get_settings.cache_clear()
