"""
Tests for the web launcher.
"""

import os

import pytest

from web import __main__ as web_main


@pytest.fixture
def served(monkeypatch):
    """Capture uvicorn.run calls instead of serving."""
    monkeypatch.setenv("SRI_ASSESSMENT_DB_PATH", "")
    monkeypatch.setenv("SRI_ASSESSMENT_LOG_LEVEL", "")
    calls = []
    monkeypatch.setattr(web_main.uvicorn, "run", lambda app, **kw: calls.append((app, kw)))
    return calls


def test_defaults(served, capsys):
    web_main.main([])
    app, kwargs = served[0]
    assert app == "web.app:app"
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 8000
    assert kwargs["reload"] is False
    assert kwargs["log_level"] == "info"
    assert "http://127.0.0.1:8000/api" in capsys.readouterr().out


def test_db_and_log_level_reach_the_app(served, tmp_path, capsys):
    db = tmp_path / "device.db"
    web_main.main(["--db", str(db), "--log-level", "debug", "--port", "9001"])
    assert os.environ["SRI_ASSESSMENT_DB_PATH"] == str(db)
    assert served[0][1]["log_level"] == "debug"
    assert served[0][1]["port"] == 9001
    assert str(db) in capsys.readouterr().out


def test_unknown_env_level_falls_back_to_info(served, monkeypatch):
    monkeypatch.setenv("SRI_ASSESSMENT_LOG_LEVEL", "verbose")
    web_main.main([])
    assert served[0][1]["log_level"] == "info"
