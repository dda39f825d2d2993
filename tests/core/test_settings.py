"""Tests for ``reelbase.core.settings``."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from reelbase.core.settings import ReelbaseSettings, get_settings, reset_settings


class TestDefaults:
    def test_defaults(self):
        s = ReelbaseSettings(_env_file=None)
        assert s.database_url == "memory"
        assert s.busy_timeout == 5.0
        assert s.foreign_keys is True
        assert s.init_schema is False
        assert s.log_level == "INFO"
        assert s.log_json is None
        assert s.data_dir == Path.home() / ".reelbase"


class TestEnvironment:
    def test_reads_prefixed_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("REELBASE_DATABASE_URL", "sqlite:///lib.db")
        monkeypatch.setenv("REELBASE_BUSY_TIMEOUT", "2.5")
        monkeypatch.setenv("REELBASE_INIT_SCHEMA", "true")
        s = ReelbaseSettings(_env_file=None)
        assert s.database_url == "sqlite:///lib.db"
        assert s.busy_timeout == 2.5
        assert s.init_schema is True

    def test_log_level_normalised(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("REELBASE_LOG_LEVEL", "debug")
        assert ReelbaseSettings(_env_file=None).log_level == "DEBUG"

    def test_invalid_log_level_rejected(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("REELBASE_LOG_LEVEL", "LOUD")
        with pytest.raises(PydanticValidationError):
            ReelbaseSettings(_env_file=None)

    def test_busy_timeout_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            ReelbaseSettings(_env_file=None, busy_timeout=0)

    def test_unknown_keys_ignored(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("REELBASE_NOT_A_SETTING", "x")
        ReelbaseSettings(_env_file=None)


class TestCache:
    def test_get_settings_cached(self):
        assert get_settings() is get_settings()

    def test_reset_settings(self, monkeypatch: pytest.MonkeyPatch):
        first = get_settings()
        monkeypatch.setenv("REELBASE_DATABASE_URL", "other.db")
        assert get_settings().database_url == first.database_url
        reset_settings()
        assert get_settings().database_url == "other.db"
