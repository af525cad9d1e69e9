"""Export of the visible command catalog."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from commandbridge.app.command_service import CommandService


def build_catalog(service: CommandService, *, version: str) -> Dict[str, Any]:
    groups = []
    for group in service.list_groups():
        groups.append({"name": group.name, "commands": [op.to_dict() for op in group.operations]})
    return {
        "version": version,
        "generated_at": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
        "async_available": service.async_available,
        "groups": groups,
    }


def write_catalog(payload: Dict[str, Any], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    return path
