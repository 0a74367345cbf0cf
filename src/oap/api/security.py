from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from oap.infrastructure.auth.staff_tokens import InvalidStaffTokenError, verify_staff_token

_bearer = HTTPBearer(auto_error=False)


class MissingStaffTokenError(Exception):
    pass


class InvalidStaffCredentialsError(Exception):
    pass


def require_staff(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    """Return the staff subject from the bearer token."""
    if credentials is None or not credentials.credentials:
        raise MissingStaffTokenError("staff authorization required")
    try:
        return verify_staff_token(credentials.credentials)
    except InvalidStaffTokenError as exc:
        raise InvalidStaffCredentialsError("invalid or expired staff token") from exc
