from sqlalchemy import select

from app.recon.db.models import Admin


class AdminRepository:
    def __init__(self, db):
        self.db = db

    def get_by_username(self, username: str):
        stmt = select(Admin).where(Admin.username == username)
        return self.db.execute(stmt).scalars().first()

    def existing_usernames(self, usernames: list[str]) -> set[str]:
        if not usernames:
            return set()
        stmt = select(Admin.username).where(Admin.username.in_(usernames))
        return set(self.db.execute(stmt).scalars().all())

    def add(self, admin: Admin) -> Admin:
        self.db.add(admin)
        return admin

    def update_password(self, admin: Admin, hashed_password: str) -> Admin:
        admin.password = hashed_password
        self.db.add(admin)
        self.db.commit()
        self.db.refresh(admin)
        return admin
