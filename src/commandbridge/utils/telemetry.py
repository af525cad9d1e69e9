"""Bridge event log: one JSON object per line in ``<log_dir>/telemetry.jsonl``.

Records are checked against ``telemetry.schema.json`` before they are
written. Web handler threads share the file, so appends are serialized.
Set ``COMMANDBRIDGE_TELEMETRY=0`` to turn recording off.
"""

from __future__ import annotations

import json
import os
import threading
import time
from collections import Counter
from pathlib import Path
from typing import Any, Iterable, Iterator

from commandbridge.resources import schema_validator
from commandbridge.settings import RuntimeSettings

_SCHEMA = "telemetry.schema.json"
_LOG_NAME = "telemetry.jsonl"
_OFF = frozenset({"0", "false", "no", "off"})
_WRITE_LOCK = threading.Lock()


def telemetry_enabled() -> bool:
    return os.getenv("COMMANDBRIDGE_TELEMETRY", "1").strip().lower() not in _OFF


def log_path(settings: RuntimeSettings) -> Path:
    return settings.log_dir / _LOG_NAME


def record_structured_event(
    settings: RuntimeSettings,
    event: str,
    *,
    payload: dict[str, Any] | None = None,
    level: str = "info",
    status: str | None = None,
    component: str | None = None,
    correlation_id: str | None = None,
    duration_ms: float | None = None,
) -> None:
    """Append one event; raises ``jsonschema.ValidationError`` for malformed records."""

    if not telemetry_enabled():
        return
    optional = {
        "status": status,
        "component": component,
        "correlationId": correlation_id,
        "durationMs": duration_ms,
    }
    record: dict[str, Any] = {"ts": time.time(), "event": event, "payload": payload or {}, "level": level}
    record.update({key: value for key, value in optional.items() if value is not None})
    schema_validator(_SCHEMA).validate(record)

    line = json.dumps(record, ensure_ascii=False) + "\n"
    path = log_path(settings)
    with _WRITE_LOCK:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as fh:
            fh.write(line)


def iter_events(settings: RuntimeSettings) -> Iterator[dict[str, Any]]:
    """Yield recorded events, skipping lines that are not valid JSON objects."""

    path = log_path(settings)
    if not path.exists():
        return
    with path.open("r", encoding="utf-8") as fh:
        for line in fh:
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(record, dict):
                yield record


def summarize(events: Iterable[dict[str, Any]]) -> dict[str, Any]:
    by_event: Counter[str] = Counter()
    by_status: Counter[str] = Counter()
    for evt in events:
        by_event[evt.get("event", "unknown")] += 1
        by_status[evt.get("status", "unknown")] += 1
    return {"total": sum(by_event.values()), "by_event": dict(by_event), "by_status": dict(by_status)}


def clear(settings: RuntimeSettings) -> None:
    with _WRITE_LOCK:
        log_path(settings).unlink(missing_ok=True)
