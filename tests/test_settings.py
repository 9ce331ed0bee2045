"""Tests for settings loading."""

from kubetask.info import normalize_include_info
from kubetask.models import IncludeInfoKey
from kubetask.settings import KubetaskSettings, get_settings, reload_settings


def test_defaults(monkeypatch):
    for name in ("KT_LOG_LEVEL", "KT_INCLUDE_INFO", "KT_OUTPUT_FORMAT"):
        monkeypatch.delenv(name, raising=False)
    settings = KubetaskSettings(_env_file=None)
    assert settings.log_level == "INFO"
    assert settings.include_info == []
    assert settings.output_format == "table"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("KT_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("KT_INCLUDE_INFO", '["*"]')
    settings = KubetaskSettings(_env_file=None)
    assert settings.log_level == "DEBUG"
    assert settings.include_info == ["*"]


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
    fresh = reload_settings()
    assert get_settings() is fresh


def test_normalize_include_info():
    assert normalize_include_info(None) == {}
    assert normalize_include_info(["*"]) == {IncludeInfoKey.ALL: True}
    assert normalize_include_info({"warnings": False}) == {IncludeInfoKey.WARNINGS: False}
