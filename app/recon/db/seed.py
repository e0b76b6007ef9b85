from sqlalchemy import select

from app.recon.core.config import settings
from app.recon.core.security import get_password_hash
from app.recon.db.models import Admin


def _get_or_create_admin(db):
    admin = db.execute(select(Admin).where(Admin.username == settings.ADMIN_USERNAME)).scalars().first()
    if admin:
        return admin
    admin = Admin(
        username=settings.ADMIN_USERNAME,
        password=get_password_hash(settings.ADMIN_PASSWORD),
        name=settings.ADMIN_NAME,
    )
    db.add(admin)
    return admin


def run_seed(db):
    admin = _get_or_create_admin(db)
    db.commit()
    return admin


if __name__ == "__main__":
    from app.recon.db.session import SessionLocal

    with SessionLocal() as session:
        seeded = run_seed(session)
        print(f"Admin account ready: {seeded.username}")
