from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest
from click.testing import CliRunner

from share_cli import main
from share_cli.domain.entities import Session, ShareDetails, ShareRequest
from share_cli.domain.errors import SessionAbortedError
from share_cli.domain.phases import FatalErrorKind


class ScriptedController:
    """Controller double that records the request and replays an outcome."""

    def __init__(self, error: SessionAbortedError | None = None) -> None:
        self.error = error
        self.requests: list[ShareRequest] = []
        self.session = Session(access_token="calm-river")
        self._listeners: list[Callable[[Session], None]] = []

    def subscribe(self, listener: Callable[[Session], None]) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: None

    def request_shutdown(self) -> None:
        pass

    def keep_serving(self) -> None:
        pass

    async def run(self, request: ShareRequest) -> None:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        self.session.details = ShareDetails(
            url="https://calmriver.relay.example",
            checksum="ab" * 20,
            password="secret",
        )
        for listener in self._listeners:
            listener(self.session)
            listener(self.session)


class DetachedKeyboard:
    def __init__(self, on_keep_serving: Callable[[], None]) -> None:
        self.on_keep_serving = on_keep_serving

    def start(self) -> bool:
        return False

    def close(self) -> None:
        pass


@pytest.fixture
def controller(monkeypatch: pytest.MonkeyPatch) -> ScriptedController:
    scripted = ScriptedController()
    monkeypatch.setattr(main, "build_session_controller", lambda settings: scripted)
    monkeypatch.setattr(main, "KeyboardSignals", DetachedKeyboard)
    return scripted


def test_json_prints_details_once(controller: ScriptedController, tmp_path: Path) -> None:
    source = tmp_path / "notes.txt"
    source.write_text("hello")

    result = CliRunner().invoke(main.cli, [str(source), "--json", "--no-tunnel", "-n", "x"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {
        "url": "https://calmriver.relay.example",
        "checksum": "ab" * 20,
        "password": "secret",
    }
    request = controller.requests[0]
    assert request.source == source
    assert request.stdin is None
    assert request.tunnel is False
    assert request.name == "x"


def test_piped_stdin_is_shared_without_file(controller: ScriptedController) -> None:
    result = CliRunner().invoke(main.cli, ["--json"], input="piped")

    assert result.exit_code == 0, result.output
    request = controller.requests[0]
    assert request.source is None
    assert request.stdin is not None
    assert request.tunnel is True


def test_tunnel_default_comes_from_settings(
    controller: ScriptedController,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("SHARE_TUNNEL_ENABLED", "false")

    CliRunner().invoke(main.cli, ["--json"], input="piped")

    assert controller.requests[0].tunnel is False


def test_fatal_error_exits_with_status_one(controller: ScriptedController) -> None:
    controller.error = SessionAbortedError(
        FatalErrorKind.MISSING_INPUT,
        "Either stdin or [file] have to be given.",
    )

    result = CliRunner().invoke(main.cli, ["--json"])

    assert result.exit_code == 1
    assert "Usage:" in result.output


def test_invalid_configuration_is_reported(
    controller: ScriptedController,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("SHARE_HOLD_SECONDS", "0")

    result = CliRunner().invoke(main.cli, ["--json"])

    assert result.exit_code == 1
    assert "SHARE_HOLD_SECONDS" in result.output
    assert controller.requests == []
