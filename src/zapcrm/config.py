"""Evolution API credentials and display settings.

The config is a plain value: built at login (or from the environment for
headless deployments) and handed explicitly to every gateway call.
"""

import os
from dataclasses import dataclass
from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_DISPLAY_TZ = "UTC"


def load_timezone(name: str) -> tzinfo:
    """Resolve an IANA zone name.

    Raises:
        ValueError: If the zone is unknown.
    """
    if name == DEFAULT_DISPLAY_TZ:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"unknown timezone: {name}") from e


@dataclass(frozen=True)
class EvolutionConfig:
    """Connection settings for one Evolution API instance.

    Raises:
        ValueError: If display_timezone is not a known zone.
    """

    base_url: str
    api_key: str
    instance_name: str
    display_timezone: str = DEFAULT_DISPLAY_TZ

    def __post_init__(self) -> None:
        # Gateway paths are appended with a leading slash
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        load_timezone(self.display_timezone)

    @property
    def tz(self) -> tzinfo:
        return load_timezone(self.display_timezone)

    def headers(self) -> dict[str, str]:
        """Headers every gateway request carries."""
        return {
            "Content-Type": "application/json",
            "apikey": self.api_key,
        }

    @classmethod
    def from_env(cls) -> "EvolutionConfig":
        """Build config from environment.

        Required env vars:
        - EVOLUTION_BASE_URL: Base URL (e.g., http://localhost:8080)
        - EVOLUTION_INSTANCE: Instance name
        - EVOLUTION_API_KEY: API token

        Optional:
        - EVOLUTION_DISPLAY_TZ: IANA zone for chat list times (default: UTC)

        Raises:
            RuntimeError: If a required variable is missing.
            ValueError: If EVOLUTION_DISPLAY_TZ is not a known zone.
        """
        base_url = os.environ.get("EVOLUTION_BASE_URL", "")
        instance = os.environ.get("EVOLUTION_INSTANCE", "")
        api_key = os.environ.get("EVOLUTION_API_KEY", "")

        if not base_url or not instance or not api_key:
            raise RuntimeError(
                "Missing Evolution config: EVOLUTION_BASE_URL, EVOLUTION_INSTANCE, EVOLUTION_API_KEY"
            )

        return cls(
            base_url=base_url,
            api_key=api_key,
            instance_name=instance,
            display_timezone=os.environ.get("EVOLUTION_DISPLAY_TZ", DEFAULT_DISPLAY_TZ),
        )

    @classmethod
    def try_from_env(cls) -> "EvolutionConfig | None":
        """Like from_env, but None when the required variables are absent.

        A present but unknown EVOLUTION_DISPLAY_TZ still raises ValueError.
        """
        try:
            return cls.from_env()
        except RuntimeError:
            return None
