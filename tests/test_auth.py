"""Tests for bearer token parsing and verification."""

import time

import jwt
import pytest

from animetoken.services.auth import decode_access_token, parse_authorization_header
from animetoken.services.exceptions import AuthError
from conftest import JWT_SECRET, make_access_token


class TestParseAuthorizationHeader:
    def test_bearer_token(self):
        assert parse_authorization_header("Bearer abc.def") == "abc.def"

    def test_scheme_is_case_insensitive(self):
        assert parse_authorization_header("bearer abc") == "abc"

    @pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer", "Bearer   "])
    def test_rejects(self, header):
        with pytest.raises(AuthError):
            parse_authorization_header(header)


class TestDecodeAccessToken:
    def test_wallet_from_user_metadata(self):
        token = make_access_token("user-1", wallet_address="Wallet111", email="a@b.co")

        user = decode_access_token(token, JWT_SECRET)

        assert user.user_id == "user-1"
        assert user.email == "a@b.co"
        assert user.require_wallet() == "Wallet111"

    def test_top_level_wallet_claim(self):
        token = jwt.encode(
            {"sub": "user-1", "aud": "authenticated", "wallet_address": "Wallet222"},
            JWT_SECRET,
            algorithm="HS256",
        )
        assert decode_access_token(token, JWT_SECRET).wallet_address == "Wallet222"

    def test_missing_wallet(self):
        user = decode_access_token(make_access_token("user-1"), JWT_SECRET)
        with pytest.raises(AuthError):
            user.require_wallet()

    def test_wrong_secret(self):
        token = make_access_token("user-1", secret="another-secret-of-reasonable-length")
        with pytest.raises(AuthError, match="Invalid"):
            decode_access_token(token, JWT_SECRET)

    def test_wrong_audience(self):
        token = make_access_token("user-1", audience="anon")
        with pytest.raises(AuthError):
            decode_access_token(token, JWT_SECRET)

    def test_expired(self):
        token = jwt.encode(
            {"sub": "user-1", "aud": "authenticated", "exp": int(time.time()) - 60},
            JWT_SECRET,
            algorithm="HS256",
        )
        with pytest.raises(AuthError, match="expired"):
            decode_access_token(token, JWT_SECRET)

    def test_missing_subject(self):
        token = jwt.encode({"aud": "authenticated"}, JWT_SECRET, algorithm="HS256")
        with pytest.raises(AuthError):
            decode_access_token(token, JWT_SECRET)

    def test_unconfigured_secret(self):
        with pytest.raises(AuthError, match="not configured"):
            decode_access_token(make_access_token("user-1"), "")
