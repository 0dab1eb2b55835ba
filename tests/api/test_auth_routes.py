"""Tests for the operator login: credential checks, failure recording and the gate."""
import bcrypt
import pytest

from lockdown.api.gate import BLOCKED_HEADER

_HASH = bcrypt.hashpw(b"S3cret!", bcrypt.gensalt(rounds=4)).decode("utf-8")

ATTACKER = {"X-Forwarded-For": "203.0.113.7"}
JSON = {"Accept": "application/json"}


@pytest.fixture(autouse=True)
def admin_account(monkeypatch):
    monkeypatch.setenv("ADMIN_USERNAME", "ops")
    monkeypatch.setenv("ADMIN_PASSWORD_HASH", _HASH)


def _login(client, password="wrong", headers=None, username="ops"):
    return client.post(
        "/api/auth/login",
        json={"username": username, "password": password},
        headers=headers or ATTACKER,
    )


class TestLogin:
    def test_valid_credentials_return_token(self, client):
        resp = _login(client, "S3cret!")
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["token_type"] == "bearer"
        assert data["access_token"]

    def test_token_grants_admin_role(self, client):
        token = _login(client, "S3cret!").json()["access_token"]
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.json() == {"username": "ops", "role": "admin"}

    def test_invalid_credentials_return_401(self, client):
        resp = _login(client)
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid username or password."

    def test_failure_recorded_with_metadata(self, client, attempts):
        _login(client, headers={**ATTACKER, "User-Agent": "hydra"}, username="root")
        [attempt] = attempts.all()
        assert attempt.ip_address == "203.0.113.7"
        assert attempt.username == "root"
        assert attempt.user_agent == "hydra"

    def test_success_not_recorded(self, client, attempts):
        _login(client, "S3cret!")
        assert attempts.all() == []

    def test_successful_login_audited(self, client, tmp_audit_log):
        _login(client, "S3cret!")
        assert '"admin_login"' in tmp_audit_log.read_text()


class TestLockout:
    def test_blocked_after_threshold(self, client, engine):
        for _ in range(3):
            assert _login(client).status_code == 401
        assert engine.is_blocked("203.0.113.7") is True

        resp = _login(client, "S3cret!")
        assert resp.status_code == 403
        assert resp.headers[BLOCKED_HEADER] == "BLOCKED"

    def test_blocked_json_response(self, client, engine, settings):
        engine.block_ip("203.0.113.7")
        resp = _login(client, headers={**ATTACKER, **JSON})
        assert resp.status_code == 403
        assert resp.json() == {
            "success": False,
            "message": settings.block_message,
            "error": settings.block_message,
        }

    def test_blocked_ajax_response_is_json(self, client, engine):
        engine.block_ip("203.0.113.7")
        resp = _login(client, headers={**ATTACKER, "X-Requested-With": "XMLHttpRequest"})
        assert resp.headers["content-type"].startswith("application/json")

    def test_blocked_html_response(self, client, engine):
        engine.block_ip("203.0.113.7")
        resp = _login(client, headers={**ATTACKER, "Accept": "text/html"})
        assert resp.status_code == 403
        assert resp.headers["content-type"].startswith("text/html")
        assert "Access Denied" in resp.text
        assert "too many failed login attempts" in resp.text

    def test_blocked_attempts_not_recorded(self, client, engine, attempts):
        engine.block_ip("203.0.113.7")
        _login(client)
        assert attempts.all() == []

    def test_other_ips_unaffected(self, client, engine):
        engine.block_ip("203.0.113.7")
        resp = _login(client, "S3cret!", headers={"X-Forwarded-For": "198.51.100.1"})
        assert resp.status_code == 200

    def test_authenticated_caller_passes_gate(self, client, engine, admin_headers):
        engine.block_ip("203.0.113.7")
        resp = _login(client, "S3cret!", headers={**ATTACKER, **admin_headers})
        assert resp.status_code == 200

    def test_whitelisted_ip_never_blocked(self, attempts, blocks, clock):
        from fastapi.testclient import TestClient

        from lockdown.api.app import create_app
        from lockdown.application.protection_engine import ProtectionEngine

        from conftest import build_test_protection, make_settings

        settings = make_settings(whitelisted_ips=("203.0.113.0/24",))
        engine = ProtectionEngine(settings, attempts, blocks, now=clock)
        client = TestClient(create_app(build_test_protection(settings, engine)))
        for _ in range(10):
            assert _login(client).status_code == 401
        assert attempts.all() == []

    def test_escaped_custom_message(self, attempts, blocks, clock):
        from fastapi.testclient import TestClient

        from lockdown.api.app import create_app
        from lockdown.application.protection_engine import ProtectionEngine

        from conftest import build_test_protection, make_settings

        settings = make_settings(block_message="<b>Blocked</b>")
        engine = ProtectionEngine(settings, attempts, blocks, now=clock)
        engine.block_ip("203.0.113.7")
        client = TestClient(create_app(build_test_protection(settings, engine)))
        resp = _login(client, headers={**ATTACKER, "Accept": "text/html"})
        assert "&lt;b&gt;Blocked&lt;/b&gt;" in resp.text


def _site_client(attempts, blocks, clock, **overrides):
    from fastapi.testclient import TestClient

    from lockdown.api.app import create_app
    from lockdown.application.protection_engine import ProtectionEngine

    from conftest import build_test_protection, make_settings

    settings = make_settings(**overrides)
    engine = ProtectionEngine(settings, attempts, blocks, now=clock)
    app = create_app(
        build_test_protection(settings, engine),
        site_authenticator=lambda u, p: (u, p) == ("member", "pw"),
    )
    return TestClient(app), engine


def _site_login(client, password="wrong"):
    return client.post(
        "/api/auth/site-login",
        json={"username": "member", "password": password},
        headers=ATTACKER,
    )


class TestSiteLogin:
    def test_valid_credentials(self, attempts, blocks, clock):
        client, _ = _site_client(attempts, blocks, clock)
        resp = _site_login(client, "pw")
        assert resp.status_code == 200
        token = resp.json()["access_token"]
        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json() == {"username": "member", "role": None}

    def test_failures_block_when_protected(self, attempts, blocks, clock):
        client, engine = _site_client(attempts, blocks, clock)
        for _ in range(3):
            assert _site_login(client).status_code == 401
        assert engine.is_blocked("203.0.113.7") is True
        resp = _site_login(client, "pw")
        assert resp.status_code == 403
        assert resp.headers[BLOCKED_HEADER] == "BLOCKED"

    def test_unprotected_site_login_ignores_lockdown(self, attempts, blocks, clock):
        client, engine = _site_client(attempts, blocks, clock, protect_front_end_login=False)
        for _ in range(5):
            assert _site_login(client).status_code == 401
        assert attempts.all() == []

        engine.block_ip("203.0.113.7")
        assert _site_login(client, "pw").status_code == 200

    def test_admin_login_still_guarded_when_site_unprotected(self, attempts, blocks, clock):
        client, engine = _site_client(attempts, blocks, clock, protect_front_end_login=False)
        engine.block_ip("203.0.113.7")
        assert _login(client, "S3cret!").status_code == 403

    def test_defaults_to_operator_credentials(self, client):
        resp = client.post(
            "/api/auth/site-login",
            json={"username": "ops", "password": "S3cret!"},
            headers=ATTACKER,
        )
        assert resp.status_code == 200
