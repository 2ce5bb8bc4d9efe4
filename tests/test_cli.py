from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest
from typer.testing import CliRunner

from cli.app import app
from cli.client import ApiClient
from cli.config import load_config


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.recorded: List[tuple[str, str, str, float]] = []
        self.queries: List[tuple[str, Optional[str], Optional[str]]] = []
        self.imported_path: Path | None = None
        self.temperatures: Dict[str, Any] = {
            "device_id": "d1",
            "device_type": "sensor",
            "data_points": [
                {"timestamp": "2024-01-01T00:00:00Z", "temperature": 20.0},
                {"timestamp": "2024-01-01T00:00:10Z", "temperature": 20.1},
            ],
        }
        self.closed = False

    def record(self, device_id: str, device_type: str, timestamp: str, temperature: float) -> Dict[str, Any]:
        self.recorded.append((device_id, device_type, timestamp, temperature))
        return {
            "device_id": device_id,
            "device_type": device_type,
            "timestamp": timestamp,
            "temperature": temperature,
        }

    def query(self, device_id: str, start: Optional[str] = None, end: Optional[str] = None) -> Dict[str, Any]:
        self.queries.append((device_id, start, end))
        return self.temperatures

    def summary(self, device_id: str, start: Optional[str] = None, end: Optional[str] = None) -> Dict[str, Any]:
        self.queries.append((device_id, start, end))
        return {
            "device_id": device_id,
            "device_type": "sensor",
            "sample_count": 2,
            "min_value": 20.0,
            "max_value": 20.1,
            "mean_value": 20.05,
            "first_timestamp": "2024-01-01T00:00:00Z",
            "last_timestamp": "2024-01-01T00:00:10Z",
        }

    def list_devices(self) -> List[Dict[str, Any]]:
        return [{"device_id": "d1", "device_type": "sensor", "sample_count": 2}]

    def import_csv(self, path: Path) -> Dict[str, Any]:
        self.imported_path = path
        return {
            "recorded_count": 1,
            "devices": ["d1"],
            "errors": [{"row_number": 3, "reason": "invalid timestamp"}],
        }

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    client = StubClient(config=None)

    def factory(config):
        client.config = config
        return client

    monkeypatch.setattr("cli.app.ApiClient", factory)
    return client


def test_record_with_explicit_timestamp(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(
        app, ["record", "d1", "sensor", "21.5", "--timestamp", "2024-01-01T00:00:00Z"]
    )

    assert result.exit_code == 0, result.stdout
    assert "Recorded 21.5 for d1" in result.stdout
    assert stub.recorded == [("d1", "sensor", "2024-01-01T00:00:00Z", 21.5)]
    assert stub.closed is True


def test_record_defaults_timestamp_to_now(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["record", "d1", "sensor", "21.5"])

    assert result.exit_code == 0
    timestamp = stub.recorded[0][2]
    assert timestamp.endswith("+00:00")


def test_query_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(
        app, ["query", "d1", "--start", "2024-01-01T00:00:00Z", "--end", "2024-01-02T00:00:00Z"]
    )

    assert result.exit_code == 0
    assert "device_type: sensor" in result.stdout
    assert "2 reading(s)." in result.stdout
    assert stub.queries == [("d1", "2024-01-01T00:00:00Z", "2024-01-02T00:00:00Z")]


def test_query_command_with_no_readings(runner: CliRunner, stub: StubClient) -> None:
    stub.temperatures = {"device_id": "d1", "device_type": "sensor", "data_points": []}

    result = runner.invoke(app, ["query", "d1"])

    assert result.exit_code == 0
    assert "No readings in range." in result.stdout


def test_summary_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["summary", "d1"])

    assert result.exit_code == 0
    assert "mean_value: 20.05" in result.stdout


def test_devices_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["devices"])

    assert result.exit_code == 0
    assert "d1 (sensor): 2 sample(s)" in result.stdout


def test_import_command(runner: CliRunner, stub: StubClient, tmp_path) -> None:
    csv_path = tmp_path / "data.csv"
    csv_path.write_text("device_id,device_type,timestamp,temperature\nd1,sensor,2024-01-01T00:00:00Z,1.0\n")

    result = runner.invoke(app, ["--base-url", "http://store:9000/", "import", str(csv_path)])

    assert result.exit_code == 0
    assert "Importing" in result.stdout
    assert "row 3: invalid timestamp" in result.stdout
    assert stub.imported_path == csv_path
    assert stub.config.base_url == "http://store:9000"


def test_load_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://example:8080/")
    monkeypatch.setenv("CLI_HTTP_TIMEOUT", "not-a-number")

    config = load_config()

    assert config.base_url == "http://example:8080"
    assert config.timeout == 30.0


def _install_transport(monkeypatch, handler) -> None:
    def factory(config):
        return ApiClient(config, transport=httpx.MockTransport(handler))

    monkeypatch.setattr("cli.app.ApiClient", factory)


def test_http_error_detail_goes_to_stderr(monkeypatch, runner: CliRunner) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/devices/ghost/temperatures"
        return httpx.Response(404, json={"detail": "No data recorded for device 'ghost'."})

    _install_transport(monkeypatch, handler)

    result = runner.invoke(app, ["query", "ghost"])

    assert result.exit_code == 1
    assert "Request failed with status 404" in result.stderr
    assert "No data recorded for device 'ghost'." in result.stderr


def test_connection_error_exits_with_failure(monkeypatch, runner: CliRunner) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    _install_transport(monkeypatch, handler)

    result = runner.invoke(app, ["--base-url", "http://store:9000", "devices"])

    assert result.exit_code == 1
    assert "Could not reach http://store:9000" in result.stderr
    assert "connection refused" in result.stderr


def test_successful_response_is_rendered(monkeypatch, runner: CliRunner) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json=[{"device_id": "d1", "device_type": "sensor", "sample_count": 4}]
        )

    _install_transport(monkeypatch, handler)

    result = runner.invoke(app, ["devices"])

    assert result.exit_code == 0
    assert "d1 (sensor): 4 sample(s)" in result.stdout
