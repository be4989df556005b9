"""Shared pytest fixtures for zapcrm tests."""
import sys
sys.dont_write_bytecode = True

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402

from zapcrm.config import EvolutionConfig  # noqa: E402

# Fixed "now" for normalizers so fallback timestamps are deterministic
FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def evolution_config() -> EvolutionConfig:
    return EvolutionConfig(
        base_url="http://localhost:8080/",
        api_key="test-api-key",
        instance_name="test-instance",
    )


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture(autouse=True)
def _clear_evolution_env(monkeypatch):
    """Keep the developer's EVOLUTION_* env from leaking into app factories."""
    for name in (
        "EVOLUTION_BASE_URL",
        "EVOLUTION_INSTANCE",
        "EVOLUTION_API_KEY",
        "EVOLUTION_DISPLAY_TZ",
    ):
        monkeypatch.delenv(name, raising=False)
