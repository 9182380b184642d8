"""JWT access token validation (and issuance for tooling and tests).

Tokens are issued by the identity provider in production; the API only
validates them. Claims read:

- sub: stable user identifier
- name: display name (optional)
- roles: list of app roles, e.g. ["Admin"] (Azure AD style)
- role: single role, accepted when roles is absent

Security Properties:
- Algorithm: HS256 (HMAC-SHA256 symmetric signing)
- Secret: JWT_SECRET environment variable
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import jwt

JWT_ALGORITHM = "HS256"


def _get_jwt_secret() -> str:
    """Get JWT_SECRET from environment.

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    secret = os.getenv("JWT_SECRET")
    if not secret:
        raise ValueError("JWT_SECRET environment variable is not set")
    return secret


def _get_jwt_expiry_minutes() -> int:
    expiry = os.getenv("JWT_EXPIRY_MINUTES", "60")
    try:
        return int(expiry)
    except ValueError:
        return 60


def create_access_token(
    subject: str,
    roles: List[str],
    name: Optional[str] = None,
    expires_in: Optional[timedelta] = None,
) -> str:
    """Create a signed access token.

    Args:
        subject: User identifier (sub claim)
        roles: App role names, e.g. ["Admin"]
        name: Optional display name
        expires_in: Lifetime (default JWT_EXPIRY_MINUTES, 60 minutes)

    Returns:
        str: Signed JWT token
    """
    now = datetime.now(timezone.utc)
    if expires_in is None:
        expires_in = timedelta(minutes=_get_jwt_expiry_minutes())

    payload = {
        "sub": subject,
        "roles": list(roles),
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    if name:
        payload["name"] = name

    return jwt.encode(payload, _get_jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
        ValueError: If JWT_SECRET is not set
    """
    secret = _get_jwt_secret()

    try:
        return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise jwt.ExpiredSignatureError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise jwt.InvalidTokenError(f"Invalid token: {str(e)}")
