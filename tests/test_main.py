"""
Entry point tests.
"""

import logging

import pytest

from tovalet import main as entry


class FakeStdin:
    def __init__(self, tty):
        self._tty = tty

    def isatty(self):
        return self._tty


class TestParseArgs:
    def test_no_flags(self):
        entry.parse_args([])

    def test_unknown_flag_rejected(self):
        with pytest.raises(SystemExit):
            entry.parse_args(["--batch"])


class TestMain:
    def test_refuses_non_terminal_stdin(self, monkeypatch):
        monkeypatch.setattr("sys.argv", ["tovalet"])
        monkeypatch.setattr("sys.stdin", FakeStdin(tty=False))
        called = []
        monkeypatch.setattr(entry, "ui_main", lambda: called.append(True))

        with pytest.raises(SystemExit) as excinfo:
            entry.main()

        assert excinfo.value.code == 1
        assert called == []

    def test_runs_ui_on_terminal(self, monkeypatch):
        monkeypatch.setattr("sys.argv", ["tovalet"])
        monkeypatch.setattr("sys.stdin", FakeStdin(tty=True))
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: None)
        called = []
        monkeypatch.setattr(entry, "ui_main", lambda: called.append(True))

        entry.main()

        assert called == [True]
