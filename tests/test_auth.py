"""Tests for bearer token validation."""

import time

import pytest

from knowledge_assistant.auth.jwt import JWTTokenHandler
from knowledge_assistant.exceptions import AuthenticationError


@pytest.fixture
def handler():
    return JWTTokenHandler()


class TestDecodeToken:
    def test_valid_token(self, handler):
        token = handler.encode_token({"sub": "user-1", "email": "pm@example.com", "exp": int(time.time()) + 60})
        user = handler.decode_token(token)
        assert user.user_id == "user-1"
        assert user.email == "pm@example.com"

    def test_expired_token(self, handler):
        token = handler.encode_token({"sub": "user-1", "exp": int(time.time()) - 60})
        with pytest.raises(AuthenticationError) as exc_info:
            handler.decode_token(token)
        assert exc_info.value.status_code == 401

    def test_wrong_secret(self, handler):
        other = JWTTokenHandler()
        other.secret_key = "another-secret"
        token = other.encode_token({"sub": "user-1", "exp": int(time.time()) + 60})
        with pytest.raises(AuthenticationError):
            handler.decode_token(token)

    def test_missing_subject(self, handler):
        token = handler.encode_token({"email": "pm@example.com", "exp": int(time.time()) + 60})
        with pytest.raises(AuthenticationError, match="missing subject"):
            handler.decode_token(token)

    def test_garbage_token(self, handler):
        with pytest.raises(AuthenticationError):
            handler.decode_token("not-a-jwt")
