"""Unit tests for password hashing utilities."""
from lockdown.infrastructure.auth.password import hash_password, is_bcrypt_hash, verify_password


class TestHashPassword:
    def test_returns_bcrypt_hash(self):
        h = hash_password("secret")
        assert h.startswith("$2b$") or h.startswith("$2a$")

    def test_different_calls_produce_different_hashes(self):
        """bcrypt uses different salts each time."""
        assert hash_password("secret") != hash_password("secret")


class TestVerifyPassword:
    def test_correct_password_returns_true(self):
        h = hash_password("mypassword")
        assert verify_password("mypassword", h) is True

    def test_wrong_password_returns_false(self):
        h = hash_password("mypassword")
        assert verify_password("wrongpassword", h) is False

    def test_empty_password_returns_false(self):
        h = hash_password("mypassword")
        assert verify_password("", h) is False

    def test_invalid_hash_returns_false(self):
        assert verify_password("pass", "not_a_hash") is False


class TestIsBcryptHash:
    def test_bcrypt_hash_detected(self):
        assert is_bcrypt_hash(hash_password("x")) is True

    def test_sha256_not_bcrypt(self):
        assert is_bcrypt_hash("a" * 64) is False

    def test_empty_string_not_bcrypt(self):
        assert is_bcrypt_hash("") is False
