"""Access to the gateway credentials held by the running app.

Credentials live on app.state (set by POST /auth/setup, cleared by
POST /auth/logout) and reach handlers only through this dependency.
"""

from fastapi import HTTPException, Request

from zapcrm.config import EvolutionConfig


def get_evolution_config(request: Request) -> EvolutionConfig | None:
    return getattr(request.app.state, "evolution_config", None)


def set_evolution_config(request: Request, config: EvolutionConfig | None) -> None:
    request.app.state.evolution_config = config


def require_evolution_config(request: Request) -> EvolutionConfig:
    """Dependency: 401 until credentials were set up."""
    config = get_evolution_config(request)
    if config is None:
        raise HTTPException(status_code=401, detail="Evolution API credentials not configured")
    return config
