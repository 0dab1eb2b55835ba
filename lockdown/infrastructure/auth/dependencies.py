"""Operator bearer tokens for the HTTP surface.

Tokens come from ``POST /api/auth/login`` (role ``admin``) or
``POST /api/auth/site-login`` (no role). Presenting either token lets a
blocked IP keep using the login endpoints; only admin tokens open
``/api/admin``.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lockdown.infrastructure.auth.jwt_handler import verify_token

_bearer = HTTPBearer(auto_error=False)


def _claims(credentials: HTTPAuthorizationCredentials | None) -> tuple[dict | None, str]:
    """Decoded access-token claims, or None and the reason they were refused."""
    if not credentials:
        return None, "Operator token required."
    payload = verify_token(credentials.credentials)
    if not payload:
        return None, "Operator token is invalid or expired."
    if payload.get("type") != "access":
        return None, "Operator token must be an access token."
    return payload, ""


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(_bearer)) -> dict:
    claims, reason = _claims(credentials)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=reason,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return claims


def get_optional_user(credentials: HTTPAuthorizationCredentials = Depends(_bearer)) -> dict | None:
    """Claims of a valid token, else None. Used by the login gate."""
    claims, _ = _claims(credentials)
    return claims


def require_admin(claims: dict = Depends(get_current_user)) -> dict:
    if claims.get("role") != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required.")
    return claims
