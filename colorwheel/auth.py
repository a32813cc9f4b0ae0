"""
Extension JWT handling: verifying viewer tokens and minting server tokens
"""
import time
from dataclasses import dataclass, field
from typing import Optional

try:
    import jwt
except ImportError:
    raise ImportError("pyjwt is required: pip install pyjwt")


BEARER_PREFIX = "Bearer "
ALGORITHM = "HS256"
SERVER_TOKEN_TTL = 30  # seconds


class AuthError(Exception):
    """Any failure to authenticate a request. Callers must not tell subclasses apart."""


class MalformedTokenError(AuthError):
    pass


class InvalidTokenError(AuthError):
    pass


@dataclass(frozen=True)
class Claims:
    channel_id: str
    user_id: str
    payload: dict = field(default_factory=dict, compare=False, repr=False)


def verify_and_decode(header: Optional[str], secret: bytes) -> Claims:
    """
    Verify an Authorization header and return the identity it carries

    Args:
        header: Raw Authorization header value, may be None
        secret: Shared extension secret (already base64-decoded)

    Raises:
        MalformedTokenError: header missing or not a bearer credential
        InvalidTokenError: bad signature, expired, or missing claims
    """
    if not header or not header.startswith(BEARER_PREFIX):
        raise MalformedTokenError()

    token = header[len(BEARER_PREFIX):]
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.PyJWTError as e:
        raise InvalidTokenError() from e

    channel_id = payload.get("channel_id")
    user_id = payload.get("opaque_user_id")
    if not channel_id or not user_id:
        raise InvalidTokenError()

    return Claims(channel_id=str(channel_id), user_id=str(user_id), payload=payload)


def make_server_token(
    channel_id: str,
    secret: bytes,
    owner_id: str,
    now: Optional[float] = None,
    ttl: int = SERVER_TOKEN_TTL,
) -> str:
    """
    Mint a short-lived token that lets this service publish to a channel

    The token acts as the extension owner with the "external" role and may
    send to every pub/sub target of the channel.
    """
    if now is None:
        now = time.time()

    payload = {
        "exp": int(now) + ttl,
        "channel_id": channel_id,
        "user_id": owner_id,  # extension owner, required for pub/sub sends
        "role": "external",
        "pubsub_perms": {
            "send": ["*"],
        },
    }

    return jwt.encode(payload, secret, algorithm=ALGORITHM)
