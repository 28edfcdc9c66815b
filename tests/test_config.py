from pathlib import Path

import pytest
from pydantic import ValidationError

from trackheat.config import get_settings
from trackheat.providers.location import Accuracy


def test_defaults(monkeypatch):
    for name in ("TRACKHEAT_POLL_INTERVAL", "TRACKHEAT_DB_PATH", "TRACKHEAT_ACCURACY"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()
    assert settings.poll_interval == 5.0
    assert settings.provider_timeout == 10.0
    assert settings.accuracy is Accuracy.BEST
    assert settings.db_path == Path("data/locations.db3")


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TRACKHEAT_POLL_INTERVAL", "1.5")
    monkeypatch.setenv("TRACKHEAT_ACCURACY", "medium")

    settings = get_settings()
    assert settings.poll_interval == 1.5
    assert settings.accuracy is Accuracy.MEDIUM


def test_keyword_overrides_win(monkeypatch, tmp_path):
    monkeypatch.setenv("TRACKHEAT_DB_PATH", "/elsewhere.db")
    assert get_settings(db_path=tmp_path / "x.db").db_path == tmp_path / "x.db"


def test_interval_must_be_positive():
    with pytest.raises(ValidationError):
        get_settings(poll_interval=0)
