"""Caller identity resolution.

Sign-in happens in the browser through the identity widget, which hands out
HS256 JWTs. When the signing secret is configured the server trusts only the
token's ``sub`` claim; otherwise it falls back to the ``userId`` the client
sends in the request body.
"""

import logging
from typing import Optional

import jwt

from app.core.errors import IdentityError

logger = logging.getLogger(__name__)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def decode_identity_token(token: str, secret: str) -> dict:
    """Verify an identity JWT and return its claims."""
    try:
        return jwt.decode(token, secret, algorithms=["HS256"], options={"verify_aud": False})
    except jwt.ExpiredSignatureError:
        raise IdentityError("Session expired. Please sign in again.")
    except jwt.InvalidTokenError as e:
        logger.info(f"Rejected identity token: {e}")
        raise IdentityError("Invalid identity token")


def resolve_user_id(
    authorization: Optional[str],
    body_user_id: Optional[str],
    jwt_secret: Optional[str] = None,
    require_identity: bool = False
) -> Optional[str]:
    """Return the caller's user id, or None when none was supplied."""
    token = _bearer_token(authorization)

    if jwt_secret and token:
        claims = decode_identity_token(token, jwt_secret)
        user_id = claims.get("sub")
        if not user_id:
            raise IdentityError("Invalid identity token")
        return str(user_id)

    if require_identity:
        raise IdentityError("Authentication required")

    if body_user_id is None:
        return None
    return str(body_user_id).strip() or None
