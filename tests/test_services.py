import json
from types import SimpleNamespace

import pytest

from conftest import FakeClickHouse, run
from src.config import ClickHouseSettings
from src.core.errors import StoreConnectionError
from src.services import clickhouse as clickhouse_module
from src.services.clickhouse import ClickHouse
from src.services.epoch_source import LatestEpochSource
from src.services.status_reporter import StatusReporter
from src.utils.logger import console_renderer


class _FakeClient:
    def __init__(self, rows=(), columns=()):
        self.rows = list(rows)
        self.columns = list(columns)
        self.calls = []
        self.closed = False

    def query(self, query, parameters=None):
        self.calls.append(("query", query, parameters))
        return SimpleNamespace(result_rows=self.rows, column_names=self.columns)

    def command(self, query, parameters=None, settings=None):
        self.calls.append(("command", query, parameters, settings))

    def insert(self, table, rows, column_names=None):
        self.calls.append(("insert", table, rows, column_names))

    def close(self):
        self.closed = True


def test_clickhouse_execute_returns_dicts():
    client = _FakeClient(rows=[(1, "a"), (2, "b")], columns=["day", "name"])
    db = ClickHouse(ClickHouseSettings(), client)

    assert run(db.execute_async("SELECT day, name FROM t")) == [{"day": 1, "name": "a"}, {"day": 2, "name": "b"}]


def test_clickhouse_passes_parameters_and_settings():
    client = _FakeClient()
    db = ClickHouse(ClickHouseSettings(), client)

    run(db.command_async("ALTER TABLE t DELETE WHERE day = {day:UInt64}", {"day": 3}, ClickHouse.MUTATION_SETTINGS))
    run(db.insert_rows_async("t", [[1]], ["day"]))
    db.insert_rows("t", [], ["day"])

    assert client.calls == [
        ("command", "ALTER TABLE t DELETE WHERE day = {day:UInt64}", {"day": 3}, {"mutations_sync": 2}),
        ("insert", "t", [[1]], ["day"]),
    ]

    db.close()
    assert client.closed
    assert db.client is None


def test_latest_epoch_source():
    indexed = FakeClickHouse(responses={"epochs": [{"epoch": 2161}]})
    empty = FakeClickHouse(responses={"epochs": [{"epoch": None}]})
    query = "SELECT maxOrNull(epoch) AS epoch FROM epochs"

    assert run(LatestEpochSource(indexed, query).get_latest_epoch()) == 2161
    assert run(LatestEpochSource(empty, query).get_latest_epoch()) is None


def test_latest_epoch_source_propagates_errors():
    db = FakeClickHouse(errors={"epochs": RuntimeError("connection refused")})

    with pytest.raises(RuntimeError):
        run(LatestEpochSource(db, "SELECT max(epoch) AS epoch FROM epochs").get_latest_epoch())


def test_status_reporter_writes_row():
    db = FakeClickHouse()

    run(StatusReporter(db).report("statistics.chart_series", "Running", {"attempted": 2}))

    table, rows, columns = db.inserts[0]
    assert table == "service_status"
    row = dict(zip(columns, rows[0]))
    assert row["name"] == "statistics.chart_series"
    assert row["status"] == "Running"
    assert json.loads(row["metadata"]) == {"attempted": 2}


def test_status_reporter_never_raises():
    db = FakeClickHouse(errors={"service_status": RuntimeError("table is read only")})

    run(StatusReporter(db).report("poolInfoUpdater", "Running"))

    assert len(db.inserts) == 1


def test_console_renderer_puts_day_context_first():
    line = console_renderer(None, "info", {
        "timestamp": "2024-01-01 00:00:00",
        "level": "error",
        "event": "Error exporting chart series",
        "error": "boom",
        "day": 6,
        "kind": "chart_series",
    })

    assert line == "2024-01-01 00:00:00 [ERROR] Error exporting chart series | kind=chart_series day=6 error=boom"


def test_console_renderer_without_context():
    line = console_renderer(None, "info", {"timestamp": "t", "level": "info", "event": "exiting...", "logger": "x"})

    assert line == "t [INFO ] exiting..."


def test_connect_wraps_unreachable_server(monkeypatch):
    def refuse(settings):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(clickhouse_module, "open_client", refuse)

    with pytest.raises(StoreConnectionError, match="localhost:8123"):
        ClickHouse(ClickHouseSettings(host="localhost", port=8123)).connect()


def test_connect_opens_client_once(monkeypatch):
    opened = []

    def open_fake(settings):
        opened.append(settings.host)
        return _FakeClient()

    monkeypatch.setattr(clickhouse_module, "open_client", open_fake)
    db = ClickHouse(ClickHouseSettings(host="clickhouse.internal"))

    assert db.connect().connect() is db
    assert opened == ["clickhouse.internal"]
