"""Unit tests for the Block and LoginAttempt entities."""
from datetime import datetime, timedelta, timezone

import pytest

from lockdown.domain.block import Block
from lockdown.domain.login_attempt import LoginAttempt

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestBlock:
    def test_active_before_expiry(self):
        block = Block("1.2.3.4", NOW + timedelta(seconds=1))
        assert block.is_active(NOW) is True

    def test_inactive_at_expiry_instant(self):
        block = Block("1.2.3.4", NOW)
        assert block.is_active(NOW) is False

    def test_defaults(self):
        block = Block("1.2.3.4", NOW)
        assert block.reason == "Manual block"
        assert block.attempt_count == 0
        assert block.is_manual is False
        assert block.id is None

    def test_empty_ip_rejected(self):
        with pytest.raises(ValueError):
            Block("", NOW)

    def test_negative_attempt_count_rejected(self):
        with pytest.raises(ValueError):
            Block("1.2.3.4", NOW, attempt_count=-1)

    def test_to_dict_without_now_has_no_active_flag(self):
        data = Block("1.2.3.4", NOW, block_id=7).to_dict()
        assert data["id"] == 7
        assert data["blocked_until"] == NOW.isoformat()
        assert "active" not in data

    def test_to_dict_with_now_reports_active(self):
        block = Block("1.2.3.4", NOW + timedelta(hours=1))
        assert block.to_dict(now=NOW)["active"] is True
        assert block.to_dict(now=NOW + timedelta(hours=2))["active"] is False


class TestLoginAttempt:
    def test_with_id_copies_fields(self):
        attempt = LoginAttempt("1.2.3.4", NOW, username="root", user_agent="curl")
        stored = attempt.with_id(42)
        assert stored.id == 42
        assert stored.username == "root"
        assert stored.user_agent == "curl"
        assert attempt.id is None

    def test_to_dict(self):
        data = LoginAttempt("1.2.3.4", NOW, attempt_id=1).to_dict()
        assert data["attempted_at"] == NOW.isoformat()
        assert data["username"] is None

    def test_empty_ip_rejected(self):
        with pytest.raises(ValueError):
            LoginAttempt("", NOW)
