import logging
from datetime import timedelta

from app.recon.core.config import settings
from app.recon.core.error_catalog import AppError, ErrorCatalog
from app.recon.core.security import mint_session_token, verify_password
from app.recon.repos.admins import AdminRepository
from app.recon.services.sessions import SessionPrincipal, SessionStore

logger = logging.getLogger("recon.auth")


class AuthService:
    def __init__(self, db, sessions: SessionStore):
        self.repo = AdminRepository(db)
        self.sessions = sessions

    def login(self, username: str, password: str):
        admin = self.repo.get_by_username(username)
        if admin is None:
            raise AppError(ErrorCatalog.INVALID_CREDENTIALS)
        ok, replacement = verify_password(password, admin.password)
        if not ok:
            raise AppError(ErrorCatalog.INVALID_CREDENTIALS)
        if replacement:
            logger.info("Upgrading stored credential for admin %s", admin.username)
            admin = self.repo.update_password(admin, replacement)

        principal = SessionPrincipal(admin_id=admin.id, username=admin.username, name=admin.name)
        self.sessions.purge_expired()
        token = mint_session_token()
        self.sessions.set(token, principal, timedelta(minutes=settings.SESSION_TTL_MINUTES))
        return principal, token

    def logout(self, token: str) -> None:
        self.sessions.delete(token)
