from __future__ import annotations

import json
from pathlib import Path

import pytest

from commandbridge.app.factory import build_command_service
from commandbridge.cli import main as cli_main


@pytest.fixture()
def cli(monkeypatch: pytest.MonkeyPatch, runtime_settings, sample_source):
    monkeypatch.setattr(cli_main, "SETTINGS", runtime_settings)

    def fake_build(settings, config, *, source=None, transport=None):
        return build_command_service(settings, config, source=sample_source, transport=transport)

    monkeypatch.setattr(cli_main, "build_command_service", fake_build)
    return cli_main.main


def _write_config(settings, text: str) -> Path:
    settings.config_path.write_text(text, encoding="utf-8")
    return settings.config_path


def test_list_text_and_json(cli, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli(["list"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("app:\n")
    assert "app:secret" not in out

    assert cli(["list", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    names = [group["name"] for group in payload["groups"]]
    assert names == ["app", "cache", "db", "other"]
    assert payload["asyncAvailable"] is False


def test_list_uses_config_allow_list(cli, runtime_settings, capsys) -> None:
    _write_config(runtime_settings, "namespaces: [db]\n")
    assert cli(["list", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert [group["name"] for group in payload["groups"]] == ["db"]


def test_describe_text(cli, capsys) -> None:
    assert cli(["describe", "app:hello"]) == 0
    out = capsys.readouterr().out
    assert "who (optional)" in out
    assert "-s, --shout" in out
    assert "--tag=VALUE (multiple)" in out


def test_describe_missing(cli, capsys) -> None:
    assert cli(["describe", "nope"]) == 1
    assert 'Command "nope" is not defined.' in capsys.readouterr().err


def test_run_sync_propagates_exit_code(cli, capsys) -> None:
    assert cli(["run", "app:hello", "--arg", "who=team", "--opt", "shout"]) == 0
    captured = capsys.readouterr()
    assert captured.out == "HELLO, TEAM!\n"
    assert "[app:hello team --shout] exit=0" in captured.err

    assert cli(["run", "app:fail", "--json"]) == 3
    payload = json.loads(capsys.readouterr().out)
    assert payload["exitCode"] == 3


def test_run_repeated_options_form_a_list(cli, capsys) -> None:
    assert cli(["run", "app:hello", "--opt", "tag=a", "--opt", "tag=b", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["cli"] == "app:hello --tag=a --tag=b"


def test_run_rejects_malformed_pairs(cli, capsys) -> None:
    assert cli(["run", "app:hello", "--arg", "who"]) == 2
    assert "Expected NAME=VALUE" in capsys.readouterr().err


def test_run_async_uses_configured_transport(cli, runtime_settings, capsys) -> None:
    assert cli(["run", "app:hello", "--async"]) == 1
    assert "not available" in capsys.readouterr().err

    _write_config(runtime_settings, "transport:\n  type: file\n  options:\n    path: spool.jsonl\n")
    assert cli(["run", "app:hello", "--arg", "who=a b", "--async"]) == 0
    assert capsys.readouterr().out.startswith('Dispatched: app:hello "a b"')
    [line] = (runtime_settings.home_dir / "spool.jsonl").read_text(encoding="utf-8").splitlines()
    assert json.loads(line)["input"] == 'app:hello "a b"'


def test_invalid_config_exits_with_usage_code(cli, runtime_settings, capsys) -> None:
    _write_config(runtime_settings, "transport:\n  type: smoke-signal\n")
    assert cli(["list"]) == 2
    assert "bridge.config_invalid" in capsys.readouterr().err


def test_catalog_to_file(cli, tmp_path: Path, capsys) -> None:
    target = tmp_path / "out" / "catalog.json"
    assert cli(["catalog", "--output", str(target)]) == 0
    payload = json.loads(target.read_text(encoding="utf-8"))
    assert payload["async_available"] is False
    assert payload["groups"][0]["name"] == "app"


def test_telemetry_report_and_clear(cli, monkeypatch, capsys) -> None:
    monkeypatch.setenv("COMMANDBRIDGE_TELEMETRY", "1")
    cli(["run", "app:hello"])
    capsys.readouterr()
    assert cli(["telemetry", "report"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["by_event"]["bridge.run"] == 1
    assert cli(["telemetry", "clear"]) == 0
    capsys.readouterr()
    assert cli(["telemetry", "tail"]) == 0
    assert capsys.readouterr().out == ""
