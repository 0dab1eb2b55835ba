"""Tests for FastAPI auth dependencies: get_current_user, get_optional_user, require_admin."""
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from jose import jwt

from lockdown.infrastructure.auth.dependencies import get_current_user, get_optional_user, require_admin
from lockdown.infrastructure.auth.jwt_handler import ALGORITHM, SECRET_KEY, create_access_token


def _make_app(dependency):
    app = FastAPI()

    @app.get("/test-dep")
    def endpoint(user=Depends(dependency)):
        return {"user": user}

    return TestClient(app)


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestGetCurrentUser:
    def test_missing_auth_returns_401(self):
        assert _make_app(get_current_user).get("/test-dep").status_code == 401

    def test_invalid_token_returns_401(self):
        resp = _make_app(get_current_user).get("/test-dep", headers=_bearer("invalid.token.here"))
        assert resp.status_code == 401

    def test_non_access_token_rejected(self):
        token = jwt.encode({"sub": "ops", "type": "refresh"}, SECRET_KEY, algorithm=ALGORITHM)
        resp = _make_app(get_current_user).get("/test-dep", headers=_bearer(token))
        assert resp.status_code == 401

    def test_valid_access_token_returns_payload(self):
        resp = _make_app(get_current_user).get("/test-dep", headers=_bearer(create_access_token("ops")))
        assert resp.status_code == 200
        assert resp.json()["user"]["sub"] == "ops"


class TestGetOptionalUser:
    def test_missing_auth_returns_none(self):
        resp = _make_app(get_optional_user).get("/test-dep")
        assert resp.status_code == 200
        assert resp.json()["user"] is None

    def test_invalid_token_returns_none(self):
        resp = _make_app(get_optional_user).get("/test-dep", headers=_bearer("garbage"))
        assert resp.json()["user"] is None

    def test_valid_token_returns_payload(self):
        resp = _make_app(get_optional_user).get("/test-dep", headers=_bearer(create_access_token("ops")))
        assert resp.json()["user"]["username"] == "ops"


class TestRequireAdmin:
    def test_admin_role_passes(self):
        token = create_access_token("ops", role="admin")
        assert _make_app(require_admin).get("/test-dep", headers=_bearer(token)).status_code == 200

    def test_missing_role_forbidden(self):
        token = create_access_token("ops")
        assert _make_app(require_admin).get("/test-dep", headers=_bearer(token)).status_code == 403


class TestRefusalDetails:
    def test_missing_token_detail(self):
        resp = _make_app(get_current_user).get("/test-dep")
        assert resp.json()["detail"] == "Operator token required."
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_non_admin_detail(self):
        token = create_access_token("member")
        resp = _make_app(require_admin).get("/test-dep", headers=_bearer(token))
        assert resp.json()["detail"] == "Admin role required."
