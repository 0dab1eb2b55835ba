"""FastAPI application factory."""
from typing import Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lockdown.api.gate import register_gate_handlers
from lockdown.api.routes.admin_routes import router as admin_router
from lockdown.api.routes.auth_routes import router as auth_router
from lockdown.bootstrap import Protection
from lockdown.infrastructure.auth.admin_utils import verify_admin_credentials


def create_app(
    protection: Protection,
    allow_origins: list | None = None,
    site_authenticator: Callable[[str, str], bool] | None = None,
) -> FastAPI:
    """Build the app around an already-wired Protection bundle.

    ``site_authenticator(username, password)`` checks public site logins;
    it defaults to the operator credentials.
    """
    app = FastAPI(
        title="Login Lockdown",
        description="Brute-force login protection service.",
        version="1.0.0",
    )
    app.state.engine = protection.engine
    app.state.gate = protection.gate
    app.state.notifier = protection.notifier
    app.state.site_authenticator = site_authenticator or verify_admin_credentials

    if allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allow_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_gate_handlers(app)
    app.include_router(auth_router)
    app.include_router(admin_router)

    @app.get("/health")
    def health():
        result = {
            "status": "online",
            "persistence": protection.persistence,
            "protection_enabled": protection.settings.enabled,
        }
        result["database"] = "connected" if protection.health_check() else "disconnected"
        return result

    return app
