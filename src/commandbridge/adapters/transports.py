"""Async transports that accept reconstructed command lines."""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any, Dict, List

import requests

from commandbridge.domain.results import RunCommandMessage, TransportAck
from commandbridge.ports.transport import MessageTransport, TransportError

DEFAULT_SPOOL_PATH = "queue/commands.jsonl"
DEFAULT_HTTP_TIMEOUT = 10.0


class MemoryTransport(MessageTransport):
    """Keeps messages in process; used for embedding and tests."""

    name = "memory"

    def __init__(self) -> None:
        self._messages: List[RunCommandMessage] = []
        self._lock = threading.Lock()

    @property
    def messages(self) -> List[RunCommandMessage]:
        with self._lock:
            return list(self._messages)

    def send(self, message: RunCommandMessage) -> TransportAck:
        with self._lock:
            self._messages.append(message)
        return TransportAck(accepted=True, message_id=message.id, transport=self.name)


class FileQueueTransport(MessageTransport):
    """Appends messages to a JSON-lines spool file read by an external worker."""

    name = "file"

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def send(self, message: RunCommandMessage) -> TransportAck:
        line = json.dumps(message.to_dict(), ensure_ascii=False) + "\n"
        try:
            with self._lock:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as fh:
                    fh.write(line)
        except OSError as exc:
            raise TransportError(f"spool file {self._path} is not writable: {exc}") from exc
        return TransportAck(accepted=True, message_id=message.id, transport=self.name)


class HttpTransport(MessageTransport):
    """POSTs each message as JSON to a queue endpoint."""

    name = "http"

    def __init__(
        self,
        url: str,
        *,
        token_env: str | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self._url = url
        self._token_env = token_env
        self._timeout = timeout
        self._session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token_env:
            token = os.environ.get(self._token_env)
            if not token:
                raise TransportError(f"http transport token missing in environment variable '{self._token_env}'")
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def send(self, message: RunCommandMessage) -> TransportAck:
        headers = self._headers()
        try:
            response = self._session.post(self._url, json=message.to_dict(), headers=headers, timeout=self._timeout)
        except requests.RequestException as exc:
            raise TransportError(f"http transport request failed: {exc}") from exc
        if response.status_code >= 400:
            raise TransportError(f"http transport rejected message: {response.status_code} {response.text}")
        return TransportAck(accepted=True, message_id=message.id, transport=self.name)


def build_transport_from_config(home_dir: Path, config: Dict[str, Any] | None) -> MessageTransport | None:
    """Return the configured transport, or ``None`` when async dispatch is disabled."""

    if not config:
        return None
    transport_type = str(config.get("type", "none")).strip().lower()
    raw_options = config.get("options") or {}
    if not isinstance(raw_options, dict):
        raise TransportError("bridge.transport_invalid: options must be object")
    options: Dict[str, Any] = dict(raw_options)

    if transport_type == "none":
        return None
    if transport_type == "memory":
        return MemoryTransport()
    if transport_type == "file":
        path = Path(str(options.get("path", DEFAULT_SPOOL_PATH))).expanduser()
        if not path.is_absolute():
            path = home_dir / path
        return FileQueueTransport(path)
    if transport_type == "http":
        url = options.get("url")
        if not isinstance(url, str) or not url:
            raise TransportError("bridge.transport_invalid: options.url required for http transport")
        return HttpTransport(
            url,
            token_env=options.get("token_env"),
            timeout=float(options.get("timeout", DEFAULT_HTTP_TIMEOUT)),
        )
    raise TransportError(f"bridge.transport_not_supported: {transport_type}")
