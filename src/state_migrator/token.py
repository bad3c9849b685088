"""Access token inspection used while rebuilding account identity.

Legacy installs may have stored an access token without the matching
user id or email. The migration engine asks a ``TokenService`` for the
identity claims carried by that token instead of resolving a global
service, so tests can hand in a fake.
"""

import base64
import binascii
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import orjson

from state_migrator.exceptions import InvalidTokenError
from state_migrator.logger import get_logger

logger = get_logger(__name__)

# header.payload.signature
JWT_PART_COUNT = 3


@dataclass(frozen=True)
class TokenIdentity:
    """Identity claims extracted from an access token."""

    user_id: str | None = None
    email: str | None = None
    name: str | None = None
    premium: bool = False


@runtime_checkable
class TokenService(Protocol):
    """Resolve identity claims from an access token."""

    async def resolve_identity(self, access_token: str) -> TokenIdentity:
        """Return the identity carried by ``access_token``.

        Raises:
            InvalidTokenError: If the token cannot be decoded.

        """
        ...


def decode_jwt_payload(access_token: str) -> dict[str, Any]:
    """Decode the claims segment of a JWT without verifying it.

    Args:
        access_token: Encoded JWT

    Returns:
        Decoded claims mapping

    Raises:
        InvalidTokenError: If the token is malformed

    """
    parts = access_token.split(".")
    if len(parts) != JWT_PART_COUNT:
        msg = "JWT must have 3 parts"
        raise InvalidTokenError(msg)

    payload = parts[1]
    payload += "=" * (-len(payload) % 4)
    try:
        decoded = base64.urlsafe_b64decode(payload)
        claims = orjson.loads(decoded)
    except (binascii.Error, ValueError) as e:
        # orjson.JSONDecodeError is a ValueError subclass
        msg = "Cannot decode token payload"
        raise InvalidTokenError(msg) from e

    if not isinstance(claims, dict):
        msg = "Token payload is not an object"
        raise InvalidTokenError(msg)
    return claims


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


class JwtTokenService:
    """TokenService reading the ``sub``, ``email``, ``name`` and ``premium``
    claims straight out of the JWT payload.
    """

    async def resolve_identity(self, access_token: str) -> TokenIdentity:
        claims = decode_jwt_payload(access_token)
        identity = TokenIdentity(
            user_id=claims.get("sub"),
            email=claims.get("email"),
            name=claims.get("name"),
            premium=_as_bool(claims.get("premium")),
        )
        logger.debug("Resolved identity claims from access token")
        return identity
