"""ASGI entrypoint that composes the workspace, community and proxy services."""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from .auth import AuthClient, AuthSettings, TokenVerifier
from .community.api import CommunitySettings, create_app as create_community_app
from .db import Database, init_engine
from .errors import install_error_handlers
from .llm_proxy.api import ProxySettings, create_app as create_proxy_app
from .log import configure_logging, log_requests
from .workspace.api import WorkspaceSettings, create_app as create_workspace_app

__all__ = ["create_app"]


def create_app(
    *,
    workspace_settings: Optional[WorkspaceSettings] = None,
    community_settings: Optional[CommunitySettings] = None,
    proxy_settings: Optional[ProxySettings] = None,
    auth_verifier: Optional[TokenVerifier] = None,
    database: Optional[Database] = None,
    log_level: Optional[str] = None,
) -> FastAPI:
    """Build the application served by ``vlab serve``.

    The services share one database and one auth client and are mounted
    under ``/workspace``, ``/community`` and ``/proxy``. Logging is set up
    from ``log_level`` (or ``LOG_LEVEL``) and every request is tagged with a
    request id.
    """

    configure_logging(log_level)
    workspace_settings = workspace_settings or WorkspaceSettings.from_env()
    if database is None:
        database = Database(
            init_engine(workspace_settings.database_url, create_tables=workspace_settings.create_tables)
        )
    verifier = auth_verifier or AuthClient(AuthSettings.from_env())

    app = FastAPI(title="VLab API", version="1.0.0")
    install_error_handlers(app)
    app.middleware("http")(log_requests)

    @app.get("/v1/healthz", tags=["health"])
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    app.mount(
        "/workspace",
        create_workspace_app(workspace_settings, auth_verifier=verifier, database=database),
    )
    app.mount(
        "/community",
        create_community_app(
            community_settings or CommunitySettings(database_url=workspace_settings.database_url),
            auth_verifier=verifier,
            database=database,
        ),
    )
    app.mount("/proxy", create_proxy_app(proxy_settings, auth_verifier=verifier))
    return app
