"""Logging contract, trace ids and a simple console logger."""

from __future__ import annotations

import dataclasses
import json
import os
import sys
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional, TextIO

from wotop.application import ApplicationData

DEFAULT_TRACE_ID = "0000000000000000"
_TRACE_KEY = object()
_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

Context = Optional[Mapping[Any, Any]]


class Logger(ABC):
    """Anything that logs messages at info, warning and error level."""

    @abstractmethod
    def info(self, ctx: Context, message: str, *args: Any) -> None:
        """Log an informational message."""

    @abstractmethod
    def warning(self, ctx: Context, message: str, *args: Any) -> None:
        """Log a warning."""

    @abstractmethod
    def error(self, ctx: Context, message: str, *args: Any) -> None:
        """Log an error."""


def set_trace_id(ctx: Context, trace_id: str) -> dict[Any, Any]:
    """Return a new context holding trace_id; ctx itself is left unchanged."""
    new_ctx = dict(ctx) if ctx else {}
    new_ctx[_TRACE_KEY] = trace_id
    return new_ctx


def get_trace_id(ctx: Context) -> str:
    """Return the trace id stored in ctx, or the all-zero default."""
    if ctx is None:
        return DEFAULT_TRACE_ID
    trace_id = ctx.get(_TRACE_KEY)
    return DEFAULT_TRACE_ID if trace_id is None else trace_id


def caller_location(skip: int) -> str:
    """Return "file.function:line" of the frame skip levels up, or ""."""
    if skip < 0:
        return ""
    try:
        frame = sys._getframe(skip)
    except ValueError:
        return ""
    code = frame.f_code
    module = os.path.splitext(os.path.basename(code.co_filename))[0]
    return f"{module}.{code.co_name}:{frame.f_lineno}"


def to_json_string(obj: Any) -> str:
    """Serialise obj to compact JSON; return "" when it cannot be serialised."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        obj = dataclasses.asdict(obj)
    try:
        return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return ""


def _format(message: str, args: tuple[Any, ...]) -> str:
    return message % args if args else message


class SimpleJSONLogger(Logger):
    """Prints log lines; info and warning appear only in the development stage."""

    def __init__(
        self,
        app_data: ApplicationData,
        stage: str,
        stream: Optional[TextIO] = None,
    ) -> None:
        self.app_data = app_data
        self.stage = stage
        self._stream = stream

    def _is_development(self) -> bool:
        return self.stage.strip().lower() == "development"

    def info(self, ctx: Context, message: str, *args: Any) -> None:
        if not self._is_development():
            return
        self._print_log(ctx, "INFO", _format(message, args))

    def warning(self, ctx: Context, message: str, *args: Any) -> None:
        if not self._is_development():
            return
        self._print_log(ctx, "WARNING", _format(message, args))

    def error(self, ctx: Context, message: str, *args: Any) -> None:
        self._print_log(ctx, "ERROR", _format(message, args))

    def json_record(
        self, severity: str, location: str, message: Any, trace_id: Any
    ) -> str:
        """Build a JSON log record for this application."""
        if severity == "ERROR":
            text = f"{trace_id} {location} {message}"
        else:
            text = f"{trace_id} {message}"
        return to_json_string(
            {
                "appName": self.app_data.app_name,
                "appInstID": self.app_data.app_instance_id,
                "start": self.app_data.start_time,
                "severity": severity,
                "message": text,
                "location": location,
                "time": datetime.now().strftime(_TIME_FORMAT),
            }
        )

    def _print_log(self, ctx: Context, flag: str, data: Any) -> None:
        trace_id = get_trace_id(ctx)
        location = caller_location(3)
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(f"{flag:<5} {trace_id} {str(data):<60} {location}\n")