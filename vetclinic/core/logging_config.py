"""
Centralized logging configuration for the veterinary clinic backend.

Console output is colored text in development and JSON lines when
``LOG_JSON`` is set; optional rotating files are always JSON. Every record
logged while a request is being served carries that request's id, so the
request line, the service messages and the response line can be joined.

Modules log with the standard library and attach structured fields through
``extra``:

    logger = logging.getLogger(__name__)
    logger.info("Pet registered", extra={"context": {"pet_id": 12}})
"""

import json
import logging
import logging.handlers
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List

from flask import Flask, g, has_request_context, request
from flask_login import current_user
from sqlalchemy import event
from sqlalchemy.engine import Engine

if TYPE_CHECKING:
    from vetclinic.core.config import AppConfig

ROTATE_BYTES = 10 * 1024 * 1024
ROTATE_BACKUPS = 5
CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
QUIET_LOGGERS = ("werkzeug", "urllib3", "passlib")


def _current_request_id() -> str:
    if has_request_context():
        return g.get("request_id", "")
    return ""


class JSONFormatter(logging.Formatter):
    """One JSON object per record: time, level, origin, message, context."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        request_id = _current_request_id()
        if request_id:
            entry["request_id"] = request_id
        context = getattr(record, "context", None)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored level names, context appended as compact JSON."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Copy so file handlers keep the plain level name
        colored = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelname, "")
        colored.levelname = f"{color}{record.levelname:<8}{self.RESET}"
        line = super().format(colored)
        context = getattr(record, "context", None)
        if context:
            line += " | " + json.dumps(context, default=str)
        return line


def _console_handler(level: int, as_json: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if as_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ConsoleFormatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    return handler


def _file_handlers(log_dir: Path, level: int) -> List[logging.Handler]:
    """``vetclinic.log`` at the configured level plus ``vetclinic_errors.log``."""
    log_dir.mkdir(parents=True, exist_ok=True)
    handlers: List[logging.Handler] = []
    for filename, handler_level in (
        ("vetclinic.log", level),
        ("vetclinic_errors.log", logging.ERROR),
    ):
        handler = logging.handlers.RotatingFileHandler(
            log_dir / filename,
            maxBytes=ROTATE_BYTES,
            backupCount=ROTATE_BACKUPS,
            encoding="utf-8",
        )
        handler.setLevel(handler_level)
        handler.setFormatter(JSONFormatter())
        handlers.append(handler)
    return handlers


_query_timing_installed = False


def _install_query_timing() -> None:
    """Log every statement with its duration on ``vetclinic.sql``."""
    global _query_timing_installed
    if _query_timing_installed:
        return

    sql_logger = logging.getLogger("vetclinic.sql")

    @event.listens_for(Engine, "before_cursor_execute")
    def _started(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("vetclinic_query_started", []).append(time.perf_counter())

    @event.listens_for(Engine, "after_cursor_execute")
    def _finished(conn, cursor, statement, parameters, context, executemany):
        started = conn.info.get("vetclinic_query_started")
        if not started:
            return
        elapsed_ms = (time.perf_counter() - started.pop()) * 1000
        sql_logger.info(
            f"SQL {elapsed_ms:.2f}ms",
            extra={"context": {"statement": statement[:500], "duration_ms": round(elapsed_ms, 2)}},
        )

    _query_timing_installed = True


def _install_request_logging(app: Flask) -> None:
    """Log one line when a request arrives and one when it is answered."""
    access_logger = logging.getLogger("vetclinic.http")

    @app.before_request
    def _request_started():
        g.request_started = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        context: Dict[str, Any] = {
            "method": request.method,
            "path": request.path,
            "remote_addr": request.remote_addr,
        }
        if current_user and current_user.is_authenticated:
            context["principal"] = current_user.email
            context["role"] = current_user.role.value
        access_logger.info(f"-> {request.method} {request.path}", extra={"context": context})

    @app.after_request
    def _request_finished(response):
        started = g.get("request_started")
        if started is None:
            return response
        elapsed_ms = (time.perf_counter() - started) * 1000
        access_logger.info(
            f"<- {request.method} {request.path} {response.status_code} ({elapsed_ms:.1f}ms)",
            extra={
                "context": {
                    "status_code": response.status_code,
                    "duration_ms": round(elapsed_ms, 2),
                }
            },
        )
        response.headers["X-Request-ID"] = g.request_id
        return response


def setup_logging(app: Flask, config: "AppConfig") -> None:
    """
    Configure the root logger and the per-request access log for ``app``.

    Existing root handlers are replaced, so calling this again (one app per
    test) does not duplicate output.
    """
    level = logging.getLevelName(str(config.log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.addHandler(_console_handler(level, config.log_json))

    if config.log_to_file:
        try:
            for handler in _file_handlers(Path(config.log_dir), level):
                root.addHandler(handler)
        except OSError as e:
            root.warning(
                f"Cannot write log files, logging to console only: {e}",
                extra={"context": {"log_dir": str(config.log_dir)}},
            )

    if config.sql_echo:
        _install_query_timing()

    _install_request_logging(app)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("vetclinic").info(
        "Logging configured",
        extra={
            "context": {
                "level": logging.getLevelName(level),
                "json": config.log_json,
                "to_file": config.log_to_file,
                "sql_timing": config.sql_echo,
            }
        },
    )
