import jwt
import pytest

from relay.errors import InvalidToken
from relay.tokens import TokenIssuer, bearer_token

KEY = "unit-test-signing-key-0123456789abcdef"
OTHER_KEY = "another-signing-key-0123456789abcdef"


def test_round_trip_binds_client_id():
    issuer = TokenIssuer(KEY)
    assert issuer.verify(issuer.issue("client-1")) == "client-1"


def test_tokens_are_bound_to_their_issuer_secret():
    token = TokenIssuer(KEY).issue("client-1")
    with pytest.raises(InvalidToken):
        TokenIssuer(OTHER_KEY).verify(token)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_tokens_rejected(token):
    with pytest.raises(InvalidToken):
        TokenIssuer(KEY).verify(token)


def test_expired_token_rejected():
    issuer = TokenIssuer(KEY, ttl_seconds=-10)
    with pytest.raises(InvalidToken):
        issuer.verify(issuer.issue("client-1"))


def test_token_without_id_claim_rejected():
    token = jwt.encode({"sub": "client-1"}, KEY, algorithm="HS256")
    with pytest.raises(InvalidToken):
        TokenIssuer(KEY).verify(token)


def test_empty_secret_refused():
    with pytest.raises(ValueError):
        TokenIssuer("")


def test_bearer_token_extraction():
    assert bearer_token("Bearer abc") == "abc"
    assert bearer_token("Basic abc") == ""
    assert bearer_token(None) == ""
