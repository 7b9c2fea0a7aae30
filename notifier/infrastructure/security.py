"""Security helpers for bearer token handling."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Mapping

from jose import ExpiredSignatureError, JWTError, jwt

from notifier.config import get_settings

ADMIN_ROLE = "admin"


class CredentialsError(Exception):
    """Raised when a bearer credential cannot authenticate a user."""


class MissingCredentialsError(CredentialsError):
    def __init__(self) -> None:
        super().__init__("No token provided")


class InvalidCredentialsError(CredentialsError):
    def __init__(self, detail: str = "Invalid token") -> None:
        super().__init__(detail)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Sign ``data`` into a bearer token.

    Tokens are issued by the authentication service; this helper exists for
    local tooling and tests that need a token signed with the shared secret.
    """

    settings = get_settings()
    expire = datetime.now(tz=timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    return jwt.encode(
        {**data, "exp": expire}, settings.secret_key, algorithm=settings.jwt_algorithm
    )


def decode_access_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as exc:
        raise InvalidCredentialsError("Token expired") from exc
    except JWTError as exc:
        raise InvalidCredentialsError() from exc


def extract_bearer_token(
    *, auth_token: str | None = None, headers: Mapping[str, str] | None = None
) -> str | None:
    """Return the token from the connection auth payload or the Authorization header."""

    if auth_token:
        return auth_token.strip() or None
    authorization = (headers or {}).get("authorization") or ""
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


def authenticate_claims(token: str | None) -> dict:
    """Verify ``token`` and return its claims once they carry an email identity."""

    if not token:
        raise MissingCredentialsError()
    payload = decode_access_token(token)
    email = payload.get("email") or payload.get("sub")
    if not isinstance(email, str) or not email:
        raise InvalidCredentialsError()
    return payload


def claims_email(payload: Mapping[str, object]) -> str:
    return str(payload.get("email") or payload.get("sub"))


def claims_are_admin(payload: Mapping[str, object]) -> bool:
    """Return whether the claims grant administrator privileges."""

    if payload.get("is_admin") is True:
        return True
    role = payload.get("role")
    return isinstance(role, str) and role.lower() == ADMIN_ROLE


def authenticate_token(token: str | None) -> str:
    """Verify ``token`` and return the email identity it carries."""

    return claims_email(authenticate_claims(token))


__all__ = [
    "ADMIN_ROLE",
    "CredentialsError",
    "InvalidCredentialsError",
    "MissingCredentialsError",
    "authenticate_claims",
    "authenticate_token",
    "claims_are_admin",
    "claims_email",
    "create_access_token",
    "decode_access_token",
    "extract_bearer_token",
]
