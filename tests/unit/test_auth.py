"""Tests for password hashing and JWT helpers."""
import pytest
from datetime import timedelta


class TestPasswordHashing:
    """Tests for password hashing functions."""

    def test_hash_password(self):
        from timetracker.utils.auth import hash_password

        hashed = hash_password("mysecretpassword")

        assert hashed != "mysecretpassword"
        assert hashed.startswith("$2b$")

    def test_verify_password_correct(self):
        from timetracker.utils.auth import hash_password, verify_password

        hashed = hash_password("mysecretpassword")

        assert verify_password("mysecretpassword", hashed) is True

    def test_verify_password_incorrect(self):
        from timetracker.utils.auth import hash_password, verify_password

        hashed = hash_password("mysecretpassword")

        assert verify_password("wrongpassword", hashed) is False

    def test_verify_password_malformed_hash(self):
        from timetracker.utils.auth import verify_password

        assert verify_password("mysecretpassword", "not-a-hash") is False

    def test_long_passwords_are_accepted(self):
        """bcrypt only sees the first 72 bytes."""
        from timetracker.utils.auth import hash_password, verify_password

        password = "x" * 100
        hashed = hash_password(password)

        assert verify_password(password, hashed) is True


class TestAccessTokens:
    """Tests for JWT token functions."""

    def test_verify_access_token_valid(self):
        from timetracker.utils.auth import create_access_token, verify_access_token

        token = create_access_token(user_id="user123")

        assert verify_access_token(token) == "user123"

    def test_verify_access_token_invalid(self):
        from jose import JWTError
        from timetracker.utils.auth import verify_access_token

        with pytest.raises(JWTError):
            verify_access_token("invalid.token.here")

    def test_verify_access_token_expired(self):
        from jose import JWTError
        from timetracker.utils.auth import create_access_token, verify_access_token

        token = create_access_token(user_id="user123", expires_delta=timedelta(seconds=-1))

        with pytest.raises(JWTError):
            verify_access_token(token)

    def test_token_claims(self):
        from jose import jwt
        from timetracker.config import settings
        from timetracker.utils.auth import create_access_token

        token = create_access_token(user_id="user123")
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])

        assert payload["sub"] == "user123"
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_rejects_token_of_other_type(self):
        from jose import JWTError, jwt
        from timetracker.config import settings
        from timetracker.utils.auth import verify_access_token

        token = jwt.encode(
            {"sub": "user123", "type": "refresh"},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(JWTError, match="Not an access token"):
            verify_access_token(token)
