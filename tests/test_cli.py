from __future__ import annotations

import os

import pytest

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

from quiz_duel import __main__ as cli  # noqa: E402
from quiz_duel import server  # noqa: E402


def test_bad_port_is_a_usage_error(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["serve", "--port", "x"])
    assert excinfo.value.code == 2
    assert "invalid int value" in capsys.readouterr().err


def test_serve_passes_host_and_port(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[str, int]] = []

    def fake_serve(*, host: str, port: int) -> int:
        calls.append((host, port))
        return 0

    monkeypatch.setattr(server, "serve", fake_serve)
    assert cli.main(["serve", "--host", "0.0.0.0", "--port", "9001"]) == 0
    assert cli.main(["serve"]) == 0
    assert calls == [("0.0.0.0", 9001), ("127.0.0.1", 8000)]


def test_no_command_runs_the_game(monkeypatch: pytest.MonkeyPatch) -> None:
    ran: list[bool] = []
    monkeypatch.setattr(cli, "run", lambda: ran.append(True) or 0)

    assert cli.main([]) == 0
    assert cli.main(["play"]) == 0
    assert ran == [True, True]


def test_help_lists_serve(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--help"])
    assert excinfo.value.code == 0
    assert "serve" in capsys.readouterr().out
