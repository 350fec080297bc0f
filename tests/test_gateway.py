"""Unit tests for auth/gateway.py -- bearer extraction and identity resolution."""

import pytest

from auth.gateway import AuthGateway, extract_bearer_token
from auth.models import IdentityContext
from auth.registry import TokenRegistry
from auth.tokens import TokenMinter


class TestExtractBearerToken:
    @pytest.mark.parametrize("header", ["Bearer abc", "bearer abc", "BEARER abc", "bEaReR abc"])
    def test_accepts_case_insensitive_scheme(self, header: str) -> None:
        assert extract_bearer_token(header) == "abc"

    @pytest.mark.parametrize(
        "header",
        [
            None,
            "",
            "Bearer",
            "Bearer ",
            "abc",
            "Basic abc",
            "Bearer abc def",
            "Bearer  abc",
            "Token abc",
        ],
    )
    def test_other_shapes_yield_none(self, header) -> None:
        assert extract_bearer_token(header) is None


class TestAuthenticate:
    def test_valid_token_attaches_identity(self, gateway: AuthGateway, minter: TokenMinter) -> None:
        token = minter.generate_access_token("user-1")
        assert gateway.authenticate(f"Bearer {token}") == IdentityContext(user_id="user-1", token=token)

    def test_no_header_is_anonymous(self, gateway: AuthGateway) -> None:
        assert gateway.authenticate(None) is None

    def test_invalid_token_is_anonymous(self, gateway: AuthGateway) -> None:
        assert gateway.authenticate("Bearer not-a-token") is None

    def test_blacklisted_token_is_anonymous(
        self, gateway: AuthGateway, minter: TokenMinter, registry: TokenRegistry
    ) -> None:
        token = minter.generate_access_token("user-1")
        registry.add_to_blacklist(token, 900)
        assert gateway.authenticate(f"Bearer {token}") is None

    def test_registry_failure_is_anonymous(self, gateway: AuthGateway, minter: TokenMinter, fake_redis) -> None:
        token = minter.generate_access_token("user-1")
        fake_redis.fail = True
        assert gateway.authenticate(f"Bearer {token}") is None

    def test_identity_context_is_read_only(self, gateway: AuthGateway, minter: TokenMinter) -> None:
        identity = gateway.authenticate(f"Bearer {minter.generate_access_token('user-1')}")
        with pytest.raises(AttributeError):
            identity.user_id = "someone-else"
