from __future__ import annotations

import json
import threading

import jsonschema
import pytest

from commandbridge.utils import telemetry


@pytest.fixture(autouse=True)
def _enable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COMMANDBRIDGE_TELEMETRY", "1")


def test_record_and_summarize(runtime_settings) -> None:
    telemetry.record_structured_event(runtime_settings, "bridge.catalog", payload={"groups": 2})
    telemetry.record_structured_event(
        runtime_settings,
        "bridge.run",
        status="success",
        component="bridge",
        duration_ms=12,
        correlation_id="abc",
    )
    events = list(telemetry.iter_events(runtime_settings))
    assert "status" not in events[0]
    assert events[1]["correlationId"] == "abc"
    assert events[1]["durationMs"] == 12
    assert telemetry.summarize(events) == {
        "total": 2,
        "by_event": {"bridge.catalog": 1, "bridge.run": 1},
        "by_status": {"unknown": 1, "success": 1},
    }
    telemetry.clear(runtime_settings)
    assert list(telemetry.iter_events(runtime_settings)) == []
    telemetry.clear(runtime_settings)


def test_disabled(monkeypatch: pytest.MonkeyPatch, runtime_settings) -> None:
    monkeypatch.setenv("COMMANDBRIDGE_TELEMETRY", "off")
    telemetry.record_structured_event(runtime_settings, "bridge.run")
    assert not telemetry.log_path(runtime_settings).exists()


def test_corrupt_lines_are_skipped(runtime_settings) -> None:
    telemetry.log_path(runtime_settings).write_text(
        '{"event": "a", "payload": {}}\nnot json\n[1, 2]\n\n', encoding="utf-8"
    )
    assert [evt["event"] for evt in telemetry.iter_events(runtime_settings)] == ["a"]


@pytest.mark.parametrize(
    "event, kwargs",
    [
        ("bridge.run", {"level": "debug"}),
        ("bridge.run", {"duration_ms": -1}),
        ("bridge.run", {"status": "maybe"}),
        ("", {}),
    ],
)
def test_schema_rejects_malformed_records(runtime_settings, event, kwargs) -> None:
    with pytest.raises(jsonschema.ValidationError):
        telemetry.record_structured_event(runtime_settings, event, **kwargs)
    assert not telemetry.log_path(runtime_settings).exists()


def test_concurrent_writers_keep_lines_intact(runtime_settings) -> None:
    start = threading.Barrier(4)

    def _write(worker: int) -> None:
        start.wait()
        for index in range(50):
            telemetry.record_structured_event(
                runtime_settings, "bridge.run", payload={"worker": worker, "index": index, "pad": "x" * 512}
            )

    threads = [threading.Thread(target=_write, args=(worker,)) for worker in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    lines = telemetry.log_path(runtime_settings).read_text(encoding="utf-8").splitlines()
    assert len(lines) == 200
    records = [json.loads(line) for line in lines]
    assert sorted((r["payload"]["worker"], r["payload"]["index"]) for r in records) == [
        (worker, index) for worker in range(4) for index in range(50)
    ]
