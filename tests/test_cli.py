from contextlib import contextmanager

import pytest
from typer.testing import CliRunner

import taskboard.api.cli as cli

runner = CliRunner()


@pytest.fixture
def connections(http, monkeypatch, tmp_path):
    """Podmienia klienta HTTP CLI na TestClient i notuje otwarcia/zamknięcia."""
    log: list[str] = []

    @contextmanager
    def fake_client(state):
        log.append("open")
        try:
            yield http
        finally:
            log.append("closed")

    monkeypatch.setattr(cli, "_http_client", fake_client)
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)
    monkeypatch.setenv("TASKBOARD_LOG_DIR", str(tmp_path))
    monkeypatch.delenv("TASKBOARD_TOKEN", raising=False)
    return log


def test_add_closes_http_client(connections, http, signup):
    # Arrange
    token, _ = signup()

    # Act
    result = runner.invoke(cli.app, ["--token", token, "add", "Kup mleko", "--priority", "high"])

    # Assert
    assert result.exit_code == 0, result.output
    assert connections == ["open", "closed"]
    tasks = http.get("tasks", headers={"Authorization": f"Bearer {token}"}).json()["tasks"]
    assert [(t["title"], t["priority"]) for t in tasks] == [("Kup mleko", "high")]


def test_rejected_token_still_closes_http_client(connections):
    result = runner.invoke(cli.app, ["--token", "nie-ma-takiego", "list"])

    assert result.exit_code == 1
    assert connections == ["open", "closed"]


def test_missing_token_opens_nothing(connections):
    result = runner.invoke(cli.app, ["list"])

    assert result.exit_code == 1
    assert connections == []
