"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from notifier.application.notifications import NotificationEngine
from notifier.infrastructure.notifications import ConnectionRegistry, NotificationPublisher
from notifier.infrastructure.security import (
    CredentialsError,
    authenticate_claims,
    claims_are_admin,
    claims_email,
)

bearer_scheme = HTTPBearer(auto_error=False)


def resolve_current_claims(token: str | None) -> dict:
    """Return the verified claims carried by ``token`` or raise a 401 error."""

    try:
        return authenticate_claims(token)
    except CredentialsError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Authentication error: {exc}",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def get_current_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict:
    return resolve_current_claims(credentials.credentials if credentials else None)


def get_current_email(claims: dict = Depends(get_current_claims)) -> str:
    """Return the authenticated user's email from the bearer token."""

    return claims_email(claims)


def require_admin(claims: dict = Depends(get_current_claims)) -> str:
    """Ensure the bearer token grants administrator privileges."""

    if not claims_are_admin(claims):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized",
        )
    return claims_email(claims)


def get_notification_engine(request: Request) -> NotificationEngine:
    return request.app.state.engine


def get_connection_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.registry


def get_publisher(request: Request) -> NotificationPublisher:
    return request.app.state.publisher
