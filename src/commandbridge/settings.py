"""Runtime settings and bridge configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from commandbridge import __version__
from commandbridge.resources import schema_validator

CONFIG_FILENAME = "bridge.yaml"
CONFIG_SCHEMA = "bridge_config.schema.json"
DEFAULT_PINNED_GROUP = "app"
DEFAULT_WEB_HOST = "127.0.0.1"
DEFAULT_WEB_PORT = 8766


class ConfigError(RuntimeError):
    """Raised when the bridge configuration cannot be loaded."""


@dataclass(frozen=True)
class RuntimeSettings:
    home_dir: Path
    state_dir: Path
    log_dir: Path
    config_path: Path
    cli_version: str = __version__


@dataclass(frozen=True)
class BridgeConfig:
    namespaces: Tuple[str, ...] = ()
    pinned_group: str = DEFAULT_PINNED_GROUP
    transport: Dict[str, Any] | None = None
    web_host: str = DEFAULT_WEB_HOST
    web_port: int = DEFAULT_WEB_PORT
    source_path: Path | None = field(default=None, compare=False)

    @property
    def transport_type(self) -> str:
        if not self.transport:
            return "none"
        return str(self.transport.get("type", "none"))


def _default_home_dir() -> Path:
    override = os.environ.get("COMMANDBRIDGE_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".commandbridge"


def load_settings() -> RuntimeSettings:
    base = _default_home_dir()
    config_override = os.environ.get("COMMANDBRIDGE_CONFIG")
    config_path = Path(config_override).expanduser() if config_override else base / CONFIG_FILENAME
    return RuntimeSettings(
        home_dir=base,
        state_dir=base / "state",
        log_dir=base / "logs",
        config_path=config_path,
    )


def load_bridge_config(path: Path) -> BridgeConfig:
    """Read ``bridge.yaml``; a missing file yields the defaults."""

    if not path.exists():
        return BridgeConfig(source_path=None)
    try:
        data = yaml.safe_load(path.read_text("utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"bridge.config_invalid: {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"bridge.config_invalid: {path}: root must be a mapping")
    errors = sorted(schema_validator(CONFIG_SCHEMA).iter_errors(data), key=lambda err: list(err.absolute_path))
    if errors:
        first = errors[0]
        location = ".".join(str(item) for item in first.absolute_path) or "<root>"
        raise ConfigError(f"bridge.config_invalid: {location}: {first.message}")

    namespaces = tuple(ns.strip() for ns in data.get("namespaces") or () if ns.strip())
    web = data.get("web") or {}
    transport = data.get("transport")
    return BridgeConfig(
        namespaces=namespaces,
        pinned_group=data.get("pinned_group", DEFAULT_PINNED_GROUP),
        transport=dict(transport) if transport else None,
        web_host=web.get("host", DEFAULT_WEB_HOST),
        web_port=int(web.get("port", DEFAULT_WEB_PORT)),
        source_path=path,
    )


SETTINGS = load_settings()
