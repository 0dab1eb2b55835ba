"""FastAPI wiring for the login gate: dependencies and the 403 response."""
import html

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse

from lockdown.api.client_ip import client_ip
from lockdown.application.login_gate import LoginGate
from lockdown.application.protection_engine import ProtectionEngine
from lockdown.infrastructure.auth.dependencies import get_optional_user

BLOCKED_HEADER = "X-Login-Lockdown"
SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}


class LoginBlocked(Exception):
    """Raised by the gate dependency; rendered as a 403 by ``blocked_response``."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def get_engine(request: Request) -> ProtectionEngine:
    return request.app.state.engine


def get_gate(request: Request) -> LoginGate:
    return request.app.state.gate


def login_gate(front_end: bool = False):
    """Build a dependency that refuses login submissions from blocked IPs."""

    def _enforce(
        request: Request,
        gate: LoginGate = Depends(get_gate),
        user: dict | None = Depends(get_optional_user),
    ) -> None:
        denied = gate.should_deny(
            client_ip(request),
            authenticated=user is not None,
            is_submission=request.method.upper() not in SAFE_METHODS,
            front_end=front_end,
        )
        if denied:
            raise LoginBlocked(gate.block_message)

    return _enforce


admin_login_gate = login_gate(front_end=False)
front_end_login_gate = login_gate(front_end=True)


def report_login_failure(request: Request, username: str | None, front_end: bool = False) -> bool:
    """Record a failed login for the requesting client. Never raises."""
    gate: LoginGate = request.app.state.gate
    return gate.report_failure(
        client_ip(request),
        username=username,
        user_agent=request.headers.get("user-agent"),
        front_end=front_end,
    )


def _wants_json(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    requested_with = request.headers.get("x-requested-with", "")
    return "application/json" in accept or requested_with.lower() == "xmlhttprequest"


_HTML_PAGE = (
    "<!DOCTYPE html><html><head><title>Access Denied</title>"
    "<style>body{font-family:-apple-system,BlinkMacSystemFont,\"Segoe UI\",Roboto,sans-serif;"
    "display:flex;align-items:center;justify-content:center;min-height:100vh;margin:0;"
    "background:#f5f5f5;}.message{text-align:center;padding:40px;background:white;"
    "border-radius:8px;box-shadow:0 2px 10px rgba(0,0,0,0.1);max-width:500px;}"
    "h1{color:#dc2626;margin:0 0 16px;}p{color:#666;margin:0;line-height:1.6;}</style></head>"
    "<body><div class=\"message\"><h1>Access Denied</h1><p>{message}</p></div></body></html>"
)


async def blocked_response(request: Request, exc: LoginBlocked):
    headers = {BLOCKED_HEADER: "BLOCKED"}
    if _wants_json(request):
        return JSONResponse(
            status_code=403,
            content={"success": False, "message": exc.message, "error": exc.message},
            headers=headers,
        )
    body = _HTML_PAGE.replace("{message}", html.escape(exc.message, quote=True))
    return HTMLResponse(status_code=403, content=body, headers=headers)


def register_gate_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LoginBlocked, blocked_response)
