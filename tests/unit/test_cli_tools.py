"""CLI helper tests."""

import sys

import pytest

from fdxsim import app


def test_app_without_pygame(monkeypatch, capsys):
    monkeypatch.setitem(sys.modules, "pygame", None)
    exit_code = app.main([])
    assert exit_code == 1
    assert "pygame is required" in capsys.readouterr().out


@pytest.mark.parametrize("argv", [["--hz", "0"], ["--hz", "80"], ["--fps", "0"]])
def test_app_rejects_invalid_arguments(argv):
    with pytest.raises(SystemExit):
        app.main(argv)


def test_app_runs_loop_with_requested_settings(monkeypatch):
    calls = []
    monkeypatch.setattr(app, "_pygame_loop", lambda hz, fps, start_running=False: calls.append((hz, fps, start_running)))
    monkeypatch.setitem(sys.modules, "pygame", object())

    assert app.main(["--hz", "10", "--fps", "20", "--run"]) == 0
    assert calls == [(10.0, 20, True)]
