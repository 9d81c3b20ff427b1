"""
tests/test_cli.py -- The medmachines command line (main.py).

Stores are pointed at a temporary SQLite file through the cached Settings
object; getpass is patched so register never blocks on a terminal.
"""

from __future__ import annotations

import json

import pytest

import main
from core.config import get_settings
from machines.models import MachineRecord
from machines.store import MachineStore


@pytest.fixture()
def db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setattr(get_settings(), "database_url", url)
    return url


def _passwords(monkeypatch, *answers):
    replies = iter(answers)
    monkeypatch.setattr(main.getpass, "getpass", lambda prompt="": next(replies))


def test_no_command_prints_help(capsys):
    assert main.main([]) == 0
    assert "medmachines" in capsys.readouterr().out


def test_register_creates_user(db_url, monkeypatch, capsys):
    _passwords(monkeypatch, "pw123456", "pw123456")
    assert main.main(["register", "cli@example.com"]) == 0
    assert "User registered successfully" in capsys.readouterr().out


def test_register_mismatched_passwords(db_url, monkeypatch, capsys):
    _passwords(monkeypatch, "one", "two")
    assert main.main(["register", "cli@example.com"]) == 1
    assert "do not match" in capsys.readouterr().out


def test_register_duplicate_reports_error(db_url, monkeypatch, capsys):
    _passwords(monkeypatch, "pw", "pw", "pw", "pw")
    assert main.main(["register", "dup@example.com"]) == 0
    assert main.main(["register", "dup@example.com"]) == 1
    assert "[!] User already exists." in capsys.readouterr().out


def test_list_empty(db_url, capsys):
    assert main.main(["list"]) == 0
    assert "No machines recorded." in capsys.readouterr().out


def test_list_json_and_type_filter(db_url, capsys):
    store = MachineStore(db_url)
    store.create(MachineRecord("Diagnostic Machines", "X-Ray Machine", "chest imaging"))
    store.create(MachineRecord("", "X-Ray Machine", ""))
    store.create(MachineRecord("Therapeutic Machines", "Ventilator", "breathing"))
    store.close()

    assert main.main(["list", "--json"]) == 0
    rows = json.loads(capsys.readouterr().out)
    assert [r["machineType"] for r in rows] == ["X-Ray Machine", "Ventilator"]
    assert set(rows[0]) == {"id", "machineName", "machineType", "purpose"}

    assert main.main(["list", "--type", "X-Ray Machine", "--json"]) == 0
    rows = json.loads(capsys.readouterr().out)
    assert len(rows) == 2


def test_serve_invokes_uvicorn(monkeypatch):
    import uvicorn

    calls = {}
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.update(app=app, **kwargs))
    assert main.main(["serve", "--port", "8123"]) == 0
    assert calls["app"] == "asgi:app"
    assert calls["port"] == 8123
    assert calls["host"] == get_settings().host
