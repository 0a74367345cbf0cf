"""HS256 bearer tokens for kitchen and admin staff.

Token issuance belongs to the staff login flow; this service only checks
that a presented token was signed with ``STAFF_TOKEN_SECRET`` and carries
the staff role.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

import jwt

ALGORITHM = "HS256"
STAFF_ROLE = "staff"


class InvalidStaffTokenError(Exception):
    pass


def _secret() -> str:
    secret = os.getenv("STAFF_TOKEN_SECRET")
    if not secret:
        raise RuntimeError("STAFF_TOKEN_SECRET is not set")
    return secret


def issue_staff_token(subject: str, ttl: timedelta = timedelta(hours=12)) -> str:
    now = datetime.now(timezone.utc)
    claims = {"sub": subject, "role": STAFF_ROLE, "iat": now, "exp": now + ttl}
    return jwt.encode(claims, _secret(), algorithm=ALGORITHM)


def verify_staff_token(token: str) -> str:
    """Return the token subject, or raise ``InvalidStaffTokenError``."""
    try:
        claims = jwt.decode(
            token,
            _secret(),
            algorithms=[ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise InvalidStaffTokenError("token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidStaffTokenError("token invalid") from exc

    if claims.get("role") != STAFF_ROLE:
        raise InvalidStaffTokenError("token is not a staff token")
    return str(claims["sub"])
