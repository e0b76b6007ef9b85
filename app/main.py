from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.recon.api import api_router
from app.recon.core.config import settings
from app.recon.core.errors import setup_exception_handlers
from app.recon.core.logging import configure_logging
from app.recon.db import session as db_session
from app.recon.middleware.body_limit import BodySizeLimitMiddleware
from app.recon.middleware.observability import ObservabilityMiddleware
from app.recon.middleware.session_gate import SessionGateMiddleware
from app.recon.middleware.trace import TraceIdMiddleware
from app.recon.services.notifications import NotificationDispatcher
from app.recon.services.sessions import build_session_store


def create_app() -> FastAPI:
    configure_logging()
    session_store = build_session_store(settings.SESSION_BACKEND, db_session.SessionLocal)
    notifier = NotificationDispatcher.from_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        notifier.start()
        try:
            yield
        finally:
            notifier.stop()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.session_store = session_store
    app.state.notifier = notifier
    app.add_middleware(BodySizeLimitMiddleware)
    app.add_middleware(SessionGateMiddleware)
    app.add_middleware(TraceIdMiddleware)
    app.add_middleware(ObservabilityMiddleware)
    setup_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
