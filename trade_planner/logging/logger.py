from __future__ import annotations

import atexit
import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger
else:
    EventDict = dict[str, Any]
    WrappedLogger = Any

EVENT_FILE_MAP = {
    "ladder": "ladders.jsonl",
    "validation": "validations.jsonl",
    "eligibility": "eligibility.jsonl",
    "execution_filter": "eligibility.jsonl",
    "smart_loss": "smart_loss.jsonl",
}

_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RED = "\033[31m"
_YELLOW = "\033[33m"
_CYAN = "\033[36m"
_WHITE = "\033[37m"
_BG_RED = "\033[41m"
_BG_GREEN = "\033[42m"
_BG_YELLOW = "\033[43m"

_LEVEL_STYLES: dict[str, str] = {
    "debug": _DIM,
    "info": _CYAN,
    "warning": f"{_BOLD}{_YELLOW}",
    "error": f"{_BOLD}{_RED}",
    "critical": f"{_BOLD}{_BG_RED}{_WHITE}",
}

_EVENT_ICONS: dict[str, str] = {
    "plan_ready": f"{_BG_GREEN}{_WHITE}{_BOLD} PLAN  {_RESET}",
    "plan_skipped": f"{_BG_YELLOW}{_WHITE}{_BOLD} SKIP  {_RESET}",
    "signal_ineligible": f"{_YELLOW} BLOCK {_RESET}",
    "execution_filtered": f"{_YELLOW} FILTER{_RESET}",
    "validation_danger": f"{_BG_RED}{_WHITE}{_BOLD} RISK! {_RESET}",
}

_SKIP_CONSOLE_KEYS = frozenset({"event", "level", "ts", "timestamp", "run_id", "logger", "exc_info"})

_LEVEL_MAP = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


def _format_kv(key: str, value: object) -> str:
    return f"{_DIM}{key}={_RESET}{value}"


def _pretty_console(event: str, level: str, kv: dict[str, Any]) -> str:
    ts = datetime.now(timezone.utc).strftime("%H:%M:%S")
    level_style = _LEVEL_STYLES.get(level, "")

    icon = _EVENT_ICONS.get(event)
    if icon:
        header = f"{_DIM}{ts}{_RESET} {icon}"
    else:
        lvl_tag = level.upper()[:4].ljust(4)
        header = f"{_DIM}{ts}{_RESET} {level_style}{lvl_tag}{_RESET}"

    detail_parts = [
        _format_kv(k, v) for k, v in kv.items() if k not in _SKIP_CONSOLE_KEYS and v is not None
    ]
    details = f"  {' '.join(detail_parts)}" if detail_parts else ""

    return f"{header} {_BOLD}{event}{_RESET}{details}"


def add_common_fields(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("run_id", os.getenv("RUN_ID", "unknown"))
    return event_dict


def _pretty_structlog_renderer(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> str:
    event = str(event_dict.pop("event", ""))
    level = str(event_dict.pop("level", method_name))
    event_dict.pop("timestamp", None)
    return _pretty_console(event, level, event_dict)


class EventFileWriter:
    def __init__(self, log_dir: Path) -> None:
        self.log_dir = log_dir
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._handles: dict[str, IO[str]] = {}

    def write_event(self, event_type: str, data: dict[str, Any]) -> None:
        filename = EVENT_FILE_MAP.get(event_type, "general.jsonl")
        if filename not in self._handles:
            self._handles[filename] = open(self.log_dir / filename, "a", encoding="utf-8")
        handle = self._handles[filename]
        handle.write(json.dumps(data, default=str) + "\n")
        handle.flush()

    def close(self) -> None:
        for h in self._handles.values():
            h.close()
        self._handles.clear()


_file_writer: EventFileWriter | None = None


def _stderr_logger(*_args: Any) -> structlog.PrintLogger:
    # Resolved per call so a swapped sys.stderr (CLI runners, capture) is honoured.
    return structlog.PrintLogger(file=sys.stderr)


def setup_logging(
    log_dir: Path | None = None, log_level: str = "INFO", *, event_log: bool = True
) -> None:
    global _file_writer

    close_logging()
    if event_log:
        _file_writer = EventFileWriter(log_dir or Path("logs"))
        atexit.register(close_logging)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            add_common_fields,
            _pretty_structlog_renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _LEVEL_MAP.get(log_level.upper(), 20)
        ),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def close_logging() -> None:
    global _file_writer
    if _file_writer is None:
        return
    try:
        _file_writer.close()
    finally:
        _file_writer = None


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def log_event(event_type: str, data: dict[str, Any]) -> None:
    if _file_writer is None:
        return

    payload: dict[str, Any] = dict(data)
    payload.setdefault("event_type", event_type)
    payload.setdefault("run_id", os.getenv("RUN_ID", "unknown"))
    payload.setdefault("ts", datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"))
    _file_writer.write_event(event_type, payload)
