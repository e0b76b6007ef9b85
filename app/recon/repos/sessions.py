from datetime import datetime

from sqlalchemy import delete

from app.recon.db.models import AdminSession


class AdminSessionRepository:
    def __init__(self, db):
        self.db = db

    def get(self, token_digest: str):
        return self.db.get(AdminSession, token_digest)

    def save(self, record: AdminSession) -> AdminSession:
        self.db.merge(record)
        self.db.commit()
        return record

    def delete(self, token_digest: str) -> int:
        result = self.db.execute(delete(AdminSession).where(AdminSession.token_digest == token_digest))
        self.db.commit()
        return result.rowcount or 0

    def delete_expired(self, now: datetime) -> int:
        result = self.db.execute(delete(AdminSession).where(AdminSession.expires_at <= now))
        self.db.commit()
        return result.rowcount or 0
