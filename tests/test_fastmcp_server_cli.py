"""CLI-level coverage for the FastMCP server wrapper."""

from __future__ import annotations

from typing import Any

import pytest

from modx_mcp import main as server_main


class _DummyApp:
    """Shim FastMCP app to capture run invocations without network I/O."""

    def __init__(self) -> None:
        self.run_calls: list[dict[str, object]] = []

    def run(self, *, transport: str, **kwargs: object) -> None:
        self.run_calls.append({"transport": transport, **kwargs})


@pytest.fixture()
def dummy_app(monkeypatch: pytest.MonkeyPatch) -> _DummyApp:
    app = _DummyApp()
    monkeypatch.setattr(
        server_main,
        "build_fastmcp_app",
        lambda _client, _settings: (app, None),
    )
    return app


def test_main_runs_fastmcp_with_transport(dummy_app: _DummyApp) -> None:
    """main() delegates to FastMCP.run with the provided transport settings."""
    exit_code = server_main.main(
        [
            "--transport",
            "http",
            "--host",
            "127.0.0.1",
            "--port",
            "8080",
            "--path",
            "/mcp",
        ]
    )

    assert exit_code == 0
    assert dummy_app.run_calls == [
        {"transport": "http", "host": "127.0.0.1", "port": 8080, "path": "/mcp"}
    ]


def test_main_defaults_to_stdio(dummy_app: _DummyApp) -> None:
    """Network options are not forwarded to the stdio transport."""
    exit_code = server_main.main(["--host", "0.0.0.0"])

    assert exit_code == 0
    assert dummy_app.run_calls == [{"transport": "stdio"}]


def test_main_applies_site_overrides(
    monkeypatch: pytest.MonkeyPatch, dummy_app: _DummyApp
) -> None:
    captured: dict[str, Any] = {}

    def fake_build(client: object, settings: object) -> tuple[_DummyApp, None]:
        captured["settings"] = settings
        return dummy_app, None

    monkeypatch.setattr(server_main, "build_fastmcp_app", fake_build)

    server_main.main(
        ["--base-url", "https://cms.example.test/", "--connector-path", "connectors"]
    )

    settings = captured["settings"]
    assert settings.base_url == "https://cms.example.test"
    assert settings.connector_path == "/connectors/"
