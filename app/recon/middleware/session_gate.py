from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse

from app.recon.core.config import settings
from app.recon.core.error_catalog import ErrorCatalog
from app.recon.core.errors import error_response
from app.recon.core.security import extract_bearer_token

PUBLIC_PATHS = frozenset(
    {
        "/api/login",
        "/api/sync/push",
        "/api/reset-data",
        "/api/config",
        "/health",
        "/ready",
        "/docs",
        "/docs/oauth2-redirect",
        "/openapi.json",
    }
)
PUBLIC_PREFIXES = ("/css/", "/js/", "/static/")


def is_public_path(path: str) -> bool:
    if path in PUBLIC_PATHS or path == settings.LOGIN_PATH:
        return True
    return path.startswith(PUBLIC_PREFIXES)


def wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("Accept", "")


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Resolves the bearer session and rejects anonymous calls outside the allow-list."""

    async def dispatch(self, request: Request, call_next):
        request.state.principal = None
        token = extract_bearer_token(request.headers.get("Authorization"))
        if token:
            store = request.app.state.session_store
            request.state.principal = await run_in_threadpool(store.get, token)

        path = request.url.path
        if request.state.principal is not None or is_public_path(path):
            return await call_next(request)

        request.state.error_code = ErrorCatalog.INVALID_TOKEN.code
        if not path.startswith("/api/") and wants_html(request):
            return RedirectResponse(settings.LOGIN_PATH, status_code=303)
        return error_response(
            code=ErrorCatalog.INVALID_TOKEN.code,
            message=ErrorCatalog.INVALID_TOKEN.message,
            details=None,
            trace_id=getattr(request.state, "trace_id", ""),
            status_code=ErrorCatalog.INVALID_TOKEN.status_code,
        )
