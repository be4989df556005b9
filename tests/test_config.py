"""Tests for EvolutionConfig."""

from datetime import timezone

import pytest

from zapcrm.api.factory import create_app
from zapcrm.config import EvolutionConfig


class TestEvolutionConfig:
    def test_trailing_slash_removed(self):
        config = EvolutionConfig(base_url="http://gw:8080///", api_key="k", instance_name="i")
        assert config.base_url == "http://gw:8080"

    def test_headers(self):
        config = EvolutionConfig(base_url="http://gw", api_key="k", instance_name="i")
        assert config.headers() == {"Content-Type": "application/json", "apikey": "k"}

    def test_default_tz_is_utc(self):
        config = EvolutionConfig(base_url="http://gw", api_key="k", instance_name="i")
        assert config.tz is timezone.utc

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("EVOLUTION_BASE_URL", "http://gw/")
        monkeypatch.setenv("EVOLUTION_INSTANCE", "vendas")
        monkeypatch.setenv("EVOLUTION_API_KEY", "k")
        monkeypatch.setenv("EVOLUTION_DISPLAY_TZ", "America/Sao_Paulo")

        config = EvolutionConfig.from_env()

        assert config.base_url == "http://gw"
        assert config.instance_name == "vendas"
        assert config.display_timezone == "America/Sao_Paulo"

    def test_from_env_missing_raises(self, monkeypatch):
        monkeypatch.setenv("EVOLUTION_BASE_URL", "http://gw")
        with pytest.raises(RuntimeError, match="Missing Evolution config"):
            EvolutionConfig.from_env()

    def test_try_from_env_missing_is_none(self):
        assert EvolutionConfig.try_from_env() is None

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValueError, match="unknown timezone"):
            EvolutionConfig(base_url="http://gw", api_key="k", instance_name="i", display_timezone="Mars/Olympus")

    def test_from_env_unknown_timezone_raises(self, monkeypatch):
        monkeypatch.setenv("EVOLUTION_BASE_URL", "http://gw")
        monkeypatch.setenv("EVOLUTION_INSTANCE", "vendas")
        monkeypatch.setenv("EVOLUTION_API_KEY", "k")
        monkeypatch.setenv("EVOLUTION_DISPLAY_TZ", "Mars/Olympus")

        with pytest.raises(ValueError, match="unknown timezone"):
            EvolutionConfig.from_env()
        with pytest.raises(ValueError, match="unknown timezone"):
            EvolutionConfig.try_from_env()

    def test_app_refuses_to_start_with_unknown_timezone(self, monkeypatch):
        monkeypatch.setenv("EVOLUTION_BASE_URL", "http://gw")
        monkeypatch.setenv("EVOLUTION_INSTANCE", "vendas")
        monkeypatch.setenv("EVOLUTION_API_KEY", "k")
        monkeypatch.setenv("EVOLUTION_DISPLAY_TZ", "Mars/Olympus")

        with pytest.raises(ValueError, match="unknown timezone"):
            create_app()

    def test_named_zone_resolves(self):
        config = EvolutionConfig(
            base_url="http://gw", api_key="k", instance_name="i", display_timezone="America/Sao_Paulo"
        )
        assert str(config.tz) == "America/Sao_Paulo"
