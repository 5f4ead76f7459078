"""Tests for chronyx.utils and chronyx.config."""

from pathlib import Path

from chronyx.config import Settings, get_settings
from chronyx.utils import get_chronyx_home


class TestGetChronyxHome:
    def test_env_override(self, chronyx_home):
        assert get_chronyx_home() == chronyx_home

    def test_default_under_home(self, monkeypatch):
        monkeypatch.delenv("CHRONYX_DATA_DIR")
        assert get_chronyx_home() == Path.home() / ".chronyx"


class TestSettings:
    def test_defaults(self, settings, chronyx_home):
        assert settings.supabase_url is None
        assert settings.log_level == "INFO"
        assert settings.request_timeout == 10.0
        assert settings.resolved_data_dir == chronyx_home

    def test_reads_prefixed_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CHRONYX_SUPABASE_URL", "https://env.supabase.co")
        monkeypatch.setenv("CHRONYX_REQUEST_TIMEOUT", "2.5")
        monkeypatch.setenv("CHRONYX_LOG_LEVEL", "DEBUG")

        settings = Settings(_env_file=None)

        assert settings.supabase_url == "https://env.supabase.co"
        assert settings.request_timeout == 2.5
        assert settings.log_level == "DEBUG"

    def test_reads_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("CHRONYX_SUPABASE_PUBLISHABLE_KEY=file-key\nUNRELATED=1\n")

        settings = Settings(_env_file=env_file)

        assert settings.supabase_publishable_key == "file-key"

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
