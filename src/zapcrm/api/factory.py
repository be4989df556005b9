"""FastAPI application factory for the CRM backend."""

from fastapi import FastAPI, Request, Response

from zapcrm.config import EvolutionConfig
from zapcrm.observability.correlation import (
    CORRELATION_ID_HEADER,
    generate_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

from .routers import public
from .routes import auth, chats


def create_app(config: EvolutionConfig | None = None, *, load_env: bool = True) -> FastAPI:
    """Create the FastAPI app.

    Args:
        config: Gateway credentials to start with. When None and `load_env`
                is set, EVOLUTION_* env vars are used if present; otherwise
                the app starts logged out and waits for POST /auth/setup.
        load_env: Whether to fall back to the environment.

    Returns:
        Configured FastAPI application.
    """
    if config is None and load_env:
        config = EvolutionConfig.try_from_env()

    app = FastAPI(
        title="zapcrm",
        docs_url=None,
        redoc_url=None,
    )
    app.state.evolution_config = config

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        token = set_correlation_id(cid)
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response
        finally:
            reset_correlation_id(token)

    app.include_router(public.router)
    app.include_router(auth.router)
    app.include_router(chats.router)

    return app
