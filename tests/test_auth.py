import time

import jwt
import pytest

from colorwheel.auth import (
    AuthError, Claims, InvalidTokenError, MalformedTokenError,
    make_server_token, verify_and_decode,
)

from .conftest import SECRET


def test_valid_token_returns_claims(make_token) -> None:
    claims = verify_and_decode("Bearer " + make_token(channel_id="c1", user_id="U1"), SECRET)
    assert claims == Claims(channel_id="c1", user_id="U1")
    assert claims.payload["role"] == "viewer"


@pytest.mark.parametrize("header", [None, "", "Basic abc", "bearer x", "Token"])
def test_missing_or_wrong_prefix_is_malformed(header) -> None:
    with pytest.raises(MalformedTokenError):
        verify_and_decode(header, SECRET)


def test_expired_token_is_invalid(make_token) -> None:
    with pytest.raises(InvalidTokenError):
        verify_and_decode("Bearer " + make_token(exp_in=-30), SECRET)


def test_wrong_secret_is_invalid(make_token) -> None:
    token = make_token(secret=b"some-other-secret-0123456789abcdef")
    with pytest.raises(InvalidTokenError):
        verify_and_decode("Bearer " + token, SECRET)


def test_other_algorithm_is_rejected(make_token) -> None:
    payload = {"exp": int(time.time()) + 60, "channel_id": "c", "opaque_user_id": "u"}
    token = jwt.encode(payload, SECRET, algorithm="HS512")
    with pytest.raises(InvalidTokenError):
        verify_and_decode("Bearer " + token, SECRET)


def test_token_without_expiry_is_invalid() -> None:
    token = jwt.encode({"channel_id": "c", "opaque_user_id": "u"}, SECRET, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        verify_and_decode("Bearer " + token, SECRET)


def test_missing_identity_claims_are_invalid(make_token) -> None:
    with pytest.raises(InvalidTokenError):
        verify_and_decode("Bearer " + make_token(channel_id=""), SECRET)


def test_garbage_token_is_invalid() -> None:
    with pytest.raises(InvalidTokenError):
        verify_and_decode("Bearer not.a.jwt", SECRET)


def test_all_failures_share_one_base(make_token) -> None:
    for header in [None, "Bearer junk", "Bearer " + make_token(exp_in=-5)]:
        with pytest.raises(AuthError):
            verify_and_decode(header, SECRET)


def test_server_token_claims() -> None:
    token = make_server_token("c42", SECRET, "100000001", now=time.time())
    payload = jwt.decode(token, SECRET, algorithms=["HS256"])
    assert payload["channel_id"] == "c42"
    assert payload["user_id"] == "100000001"
    assert payload["role"] == "external"
    assert payload["pubsub_perms"] == {"send": ["*"]}


def test_server_token_expires_after_thirty_seconds() -> None:
    token = make_server_token("c42", SECRET, "owner", now=1_000_000.7)
    payload = jwt.decode(token, SECRET, algorithms=["HS256"], options={"verify_exp": False})
    assert payload["exp"] == 1_000_030
