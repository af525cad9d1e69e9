"""HTTP server exposing the command bridge as a JSON API."""

from __future__ import annotations

import html
import json
from dataclasses import dataclass
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, HTTPServer
from socketserver import ThreadingMixIn
from typing import Any, Callable, Dict, List
from urllib.parse import unquote, urlparse

from commandbridge.app.command_service import CommandService
from commandbridge.app.dispatch import DispatchFailedError, DispatchUnavailableError
from commandbridge.domain.grouping import OperationGroup
from commandbridge.domain.operations import OperationNotFoundError
from commandbridge.resources import schema_validator

RUN_REQUEST_SCHEMA = "run_request.schema.json"
MAX_BODY_BYTES = 1024 * 1024

_HTML_TEMPLATE = """<!doctype html><html><head><meta charset='utf-8'><title>Commands</title>
<style>
body {{ font-family: system-ui, sans-serif; margin: 2rem; background: #0c0d13; color: #fafafa; }}
section {{ margin-bottom: 1.5rem; }}
a {{ color: #9aa3ff; }}
code {{ background: #1e2130; padding: 0.2rem 0.4rem; border-radius: 4px; }}
.label {{ color:#7a85ff; text-transform:uppercase; font-size:0.75rem; letter-spacing:0.1rem; }}
</style>
</head><body>
<h1>Commands</h1>
<p>Async dispatch: <code>{async_state}</code>. Run with <code>POST /run/&lt;name&gt;</code>.</p>
{groups}
</body></html>"""


def _render_groups(groups: List[OperationGroup]) -> str:
    sections = []
    for group in groups:
        items = "".join(
            f"<li><a href=\"/describe/{html.escape(op.name)}\"><code>{html.escape(op.name)}</code></a> "
            f"{html.escape(op.description)}</li>"
            for op in group.operations
        )
        sections.append(f"<section><div class='label'>{html.escape(group.name)}</div><ul>{items}</ul></section>")
    return "\n".join(sections) or "<p>No commands available.</p>"


@dataclass
class CommandWebConfig:
    host: str
    port: int


class ThreadedHTTPServer(ThreadingMixIn, HTTPServer):
    daemon_threads = True


class CommandWebApp:
    """Serves listing, describe and run endpoints on top of a CommandService."""

    def __init__(self, service: CommandService, config: CommandWebConfig) -> None:
        self._service = service
        self._config = config

    @property
    def config(self) -> CommandWebConfig:
        return self._config

    @property
    def service(self) -> CommandService:
        return self._service

    def run_payload(self, name: str, body: Dict[str, Any]) -> Dict[str, Any]:
        result = self._service.run(
            name,
            body.get("arguments") or {},
            body.get("options") or {},
            dispatch=bool(body.get("async", False)),
        )
        return result.to_dict()

    def create_server(self) -> ThreadedHTTPServer:
        app = self

        class Handler(BaseHTTPRequestHandler):
            def log_message(self, format: str, *args: object) -> None:  # noqa: A003 - silence default logging
                return

            def _write_json(self, status: HTTPStatus, payload: Dict[str, Any]) -> None:
                data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
                self.send_response(status)
                self.send_header("Content-Type", "application/json; charset=utf-8")
                self.send_header("Content-Length", str(len(data)))
                self.end_headers()
                self.wfile.write(data)

            def _write_error(self, status: HTTPStatus, message: str) -> None:
                self._write_json(status, {"error": status.phrase, "message": message})

            def _route_name(self, path: str, prefix: str) -> str:
                return unquote(path[len(prefix):])

            def do_GET(self) -> None:  # noqa: N802
                self._dispatch(self._handle_get)

            def do_POST(self) -> None:  # noqa: N802
                self._dispatch(self._handle_post)

            def _dispatch(self, route: Callable[[], None]) -> None:
                try:
                    route()
                except Exception as exc:  # noqa: BLE001 - every request gets a JSON reply
                    self._write_error(HTTPStatus.INTERNAL_SERVER_ERROR, f"{type(exc).__name__}: {exc}")

            def _handle_get(self) -> None:
                parsed = urlparse(self.path)
                path = parsed.path
                if path == "/":
                    self._serve_index()
                    return
                if path == "/healthz":
                    self._write_json(HTTPStatus.OK, {"status": "ok"})
                    return
                if path == "/list":
                    groups = app._service.list_groups()
                    self._write_json(
                        HTTPStatus.OK,
                        {
                            "groups": [group.to_dict() for group in groups],
                            "asyncAvailable": app._service.async_available,
                        },
                    )
                    return
                if path.startswith("/describe/"):
                    name = self._route_name(path, "/describe/")
                    try:
                        operation = app._service.describe(name)
                    except OperationNotFoundError as exc:
                        self._write_error(HTTPStatus.NOT_FOUND, str(exc))
                        return
                    payload = operation.to_dict()
                    payload["asyncAvailable"] = app._service.async_available
                    self._write_json(HTTPStatus.OK, payload)
                    return
                self._write_error(HTTPStatus.NOT_FOUND, f"No route for {path}")

            def _handle_post(self) -> None:
                parsed = urlparse(self.path)
                if not parsed.path.startswith("/run/"):
                    self._write_error(HTTPStatus.NOT_FOUND, f"No route for {parsed.path}")
                    return
                name = self._route_name(parsed.path, "/run/")
                body = self._read_body()
                if body is None:
                    return
                try:
                    payload = app.run_payload(name, body)
                except OperationNotFoundError as exc:
                    self._write_error(HTTPStatus.NOT_FOUND, str(exc))
                    return
                except DispatchUnavailableError as exc:
                    self._write_error(HTTPStatus.SERVICE_UNAVAILABLE, str(exc))
                    return
                except DispatchFailedError as exc:
                    self._write_error(HTTPStatus.BAD_GATEWAY, str(exc))
                    return
                self._write_json(HTTPStatus.OK, payload)

            def _read_body(self) -> Dict[str, Any] | None:
                try:
                    length = int(self.headers.get("Content-Length") or 0)
                except ValueError:
                    length = -1
                if length < 0 or length > MAX_BODY_BYTES:
                    self._write_error(HTTPStatus.BAD_REQUEST, "Invalid Content-Length")
                    return None
                raw = self.rfile.read(length) if length else b""
                if not raw.strip():
                    return {}
                try:
                    body = json.loads(raw.decode("utf-8"))
                except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                    self._write_error(HTTPStatus.BAD_REQUEST, f"Request body is not valid JSON: {exc}")
                    return None
                errors = list(schema_validator(RUN_REQUEST_SCHEMA).iter_errors(body))
                if errors:
                    first = errors[0]
                    location = ".".join(str(item) for item in first.absolute_path) or "<body>"
                    self._write_error(HTTPStatus.BAD_REQUEST, f"{location}: {first.message}")
                    return None
                return body

            def _serve_index(self) -> None:
                markup = _HTML_TEMPLATE.format(
                    async_state="enabled" if app._service.async_available else "disabled",
                    groups=_render_groups(app._service.list_groups()),
                )
                data = markup.encode("utf-8")
                self.send_response(HTTPStatus.OK)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
                self.send_header("Content-Length", str(len(data)))
                self.end_headers()
                self.wfile.write(data)

        return ThreadedHTTPServer((self._config.host, self._config.port), Handler)


__all__ = ["CommandWebApp", "CommandWebConfig", "ThreadedHTTPServer"]
