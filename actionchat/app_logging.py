"""Application and access logging setup.

Two rotating log files are written to ``LOG_DIR``:

- ``assistant.log`` for the ``actionchat`` logger hierarchy (every module logs
  through ``logging.getLogger(__name__)``);
- ``access.log`` for ``uvicorn.access``, fed by an HTTP middleware that records
  one JSON line per request with a request id and scrubbed headers/bodies.

Environment variables: LOG_DIR, LOG_LEVEL, LOG_JSON, LOG_REQUEST_BODIES,
LOG_RETENTION_DAYS, LOG_ROTATE_UTC.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import time
from logging.handlers import TimedRotatingFileHandler
from typing import Any, cast
from uuid import uuid4

from fastapi import FastAPI, Request

APP_LOGGER_NAME = "actionchat"
ACCESS_LOGGER_NAME = "uvicorn.access"
SKIP_ACCESS_PATHS = frozenset({"/api/health", "/api/metrics"})

SENSITIVE_FIELDS = {
    "authorization",
    "cookie",
    "set-cookie",
    "password",
    "token",
    "api_key",
    "apikey",
    "x-api-key",
}


@dataclasses.dataclass(frozen=True)
class LogConfig:
    log_dir: str = "logs"
    level: int = logging.INFO
    json_format: bool = False
    request_bodies: bool = False
    retention_days: int = 7
    rotate_utc: bool = False

    @classmethod
    def from_env(cls) -> "LogConfig":
        level_name = os.getenv("LOG_LEVEL", "INFO").upper()
        return cls(
            log_dir=os.getenv("LOG_DIR", "logs"),
            level=getattr(logging, level_name, logging.INFO),
            json_format=os.getenv("LOG_JSON", "false").lower() == "true",
            request_bodies=os.getenv("LOG_REQUEST_BODIES", "false").lower() == "true",
            retention_days=int(os.getenv("LOG_RETENTION_DAYS", "7")),
            rotate_utc=os.getenv("LOG_ROTATE_UTC", "false").lower() == "true",
        )

    def describe(self) -> dict[str, Any]:
        return {
            "log_dir": os.path.abspath(self.log_dir),
            "log_level": logging.getLevelName(self.level),
            "log_json": self.json_format,
            "log_request_bodies": self.request_bodies,
            "retention_days": self.retention_days,
            "rotate_utc": self.rotate_utc,
        }


class JsonFormatter(logging.Formatter):
    """One JSON object per record, used when LOG_JSON=true."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "level": record.levelname,
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "logger": record.name,
            "message": record.getMessage(),
        }
        session_id = getattr(record, "session_id", None)
        if session_id:
            payload["session_id"] = session_id
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _formatter(config: LogConfig) -> logging.Formatter:
    if config.json_format:
        return JsonFormatter()
    return logging.Formatter("[%(asctime)s] %(levelname)s in %(name)s: %(message)s")


def _rotating_handler(config: LogConfig, filename: str) -> TimedRotatingFileHandler:
    handler = TimedRotatingFileHandler(
        os.path.join(config.log_dir, filename),
        when="midnight",
        backupCount=config.retention_days,
        utc=config.rotate_utc,
    )
    handler.setFormatter(_formatter(config))
    return handler


def scrub(data: object) -> object:
    """Mask sensitive keys in nested dictionaries and lists."""

    if isinstance(data, dict):
        return {
            key: ("***" if str(key).lower() in SENSITIVE_FIELDS else scrub(value))
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [scrub(value) for value in data]
    return data


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return None


def _install_access_logging(app: FastAPI, config: LogConfig) -> None:
    access_logger = logging.getLogger(ACCESS_LOGGER_NAME)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        if request.url.path in SKIP_ACCESS_PATHS:
            return await call_next(request)

        request_id = request.headers.get("X-Request-Id") or uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        body: object | None = None
        if config.request_bodies:
            raw = await request.body()

            async def receive() -> dict:  # pragma: no cover - replays the cached body
                return {"type": "http.request", "body": raw, "more_body": False}

            request._receive = receive  # type: ignore[attr-defined]
            if raw:
                try:
                    body = scrub(json.loads(raw))
                except ValueError:
                    body = raw.decode("utf-8", errors="replace")

        response = await call_next(request)

        entry: dict[str, Any] = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "latency_ms": round((time.perf_counter() - started) * 1000, 2),
            "client_ip": _client_ip(request),
            "headers": scrub(dict(request.headers)),
        }
        if body is not None:
            entry["body"] = body

        response.headers["X-Request-Id"] = request_id
        access_logger.info(json.dumps(entry, default=str))
        return response


def init_logging(app: FastAPI | None = None, config: LogConfig | None = None) -> LogConfig:
    """Configure the assistant and access loggers; install the middleware if an app is given."""

    config = config or LogConfig.from_env()
    os.makedirs(config.log_dir, exist_ok=True)

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    if not app_logger.handlers:
        app_logger.addHandler(_rotating_handler(config, "assistant.log"))
    app_logger.setLevel(config.level)

    access_logger = logging.getLogger(ACCESS_LOGGER_NAME)
    access_logger.handlers.clear()
    access_logger.addHandler(_rotating_handler(config, "access.log"))
    access_logger.setLevel(config.level)

    if app is not None:
        cast(Any, app).logger = app_logger
        _install_access_logging(app, config)
    return config
