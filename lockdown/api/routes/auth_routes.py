"""Login endpoints guarded by the login gate: operator (admin area) and public site."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from lockdown.api.gate import admin_login_gate, front_end_login_gate, report_login_failure
from lockdown.infrastructure.audit import log_event as audit_log
from lockdown.infrastructure.auth.admin_utils import verify_admin_credentials
from lockdown.infrastructure.auth.dependencies import get_current_user
from lockdown.infrastructure.auth.jwt_handler import create_access_token

log = logging.getLogger("lockdown.auth")

router = APIRouter(prefix="/api/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/login", dependencies=[Depends(admin_login_gate)])
def api_login(req: LoginRequest, request: Request):
    """Authenticate the operator. Failed attempts feed brute-force protection."""
    if not verify_admin_credentials(req.username, req.password):
        report_login_failure(request, req.username)
        raise HTTPException(status_code=401, detail="Invalid username or password.")

    username = req.username.strip().lower()
    access_token = create_access_token(username, role="admin")

    try:
        audit_log("admin_login", username)
    except OSError as exc:  # pragma: no cover
        log.warning("Audit log write failed: %s", exc)

    return {
        "success": True,
        "access_token": access_token,
        "token_type": "bearer",
    }


@router.post("/site-login", dependencies=[Depends(front_end_login_gate)])
def api_site_login(req: LoginRequest, request: Request):
    """Public-facing login. Guarded only while ``protect_front_end_login`` is set.

    Credentials are checked by ``app.state.site_authenticator``; the token
    carries no admin role.
    """
    authenticate = request.app.state.site_authenticator
    if not authenticate(req.username, req.password):
        report_login_failure(request, req.username, front_end=True)
        raise HTTPException(status_code=401, detail="Invalid username or password.")

    username = req.username.strip().lower()
    return {
        "success": True,
        "access_token": create_access_token(username),
        "token_type": "bearer",
    }


@router.get("/me")
def api_me(current_user: dict = Depends(get_current_user)):
    """Return the claims of the presented access token."""
    return {
        "username": current_user.get("username"),
        "role": current_user.get("role"),
    }
