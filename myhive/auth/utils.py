"""JWT access token helpers.

Tokens are issued by the external auth service; this API only verifies them.
``create_access_token`` mirrors the issuer's claims so tests and tooling can
mint tokens with the shared secret.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from pydantic import BaseModel

from myhive.config import get_settings


class TokenData(BaseModel):
    """Token payload data.

    Attributes:
        user_id: User's UUID.
        org_id: Organisation's UUID.
    """

    user_id: str
    org_id: str | None = None


def create_access_token(
    user_id: str,
    org_id: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token.

    Args:
        user_id: User's UUID.
        org_id: Organisation's UUID.
        expires_delta: Optional custom expiration time.

    Returns:
        str: Encoded JWT token.
    """
    settings = get_settings()
    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = {
        "sub": user_id,
        "org_id": org_id,
        "exp": expire,
        "type": "access",
    }

    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> TokenData | None:
    """Decode and validate a JWT access token.

    Args:
        token: JWT token string.

    Returns:
        TokenData | None: Token data if valid, None otherwise.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
    except JWTError:
        return None

    user_id: str = payload.get("sub")
    token_type: str = payload.get("type")
    if user_id is None or token_type != "access":
        return None

    return TokenData(user_id=user_id, org_id=payload.get("org_id"))
