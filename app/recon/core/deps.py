from fastapi import Request

from app.recon.core.error_catalog import AppError, ErrorCatalog
from app.recon.core.security import extract_bearer_token
from app.recon.services.notifications import NotificationDispatcher
from app.recon.services.sessions import SessionPrincipal, SessionStore


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_notifier(request: Request) -> NotificationDispatcher:
    return request.app.state.notifier


def get_bearer_token(request: Request) -> str | None:
    return extract_bearer_token(request.headers.get("Authorization"))


def require_principal(request: Request) -> SessionPrincipal:
    principal = getattr(request.state, "principal", None)
    if isinstance(principal, SessionPrincipal):
        return principal
    token = get_bearer_token(request)
    if token:
        principal = get_session_store(request).get(token)
        if principal is not None:
            request.state.principal = principal
            return principal
    raise AppError(ErrorCatalog.INVALID_TOKEN)


__all__ = [
    "get_bearer_token",
    "get_notifier",
    "get_session_store",
    "require_principal",
]
