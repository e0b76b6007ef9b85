import hashlib
import hmac
import secrets

from passlib.context import CryptContext

from app.recon.core.config import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

SESSION_TOKEN_PREFIX = "sess_"


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def is_password_hash(value: str | None) -> bool:
    if not value:
        return False
    return pwd_context.identify(value) is not None


def verify_password(plain_password: str, stored_password: str | None) -> tuple[bool, str | None]:
    """Check a password against a stored credential.

    Returns ``(ok, replacement_hash)``. ``replacement_hash`` is set when the
    stored value should be rewritten: a legacy plaintext credential or a
    hash produced with deprecated settings.
    """
    if not stored_password:
        return False, None
    if not is_password_hash(stored_password):
        ok = hmac.compare_digest(plain_password.encode("utf-8"), stored_password.encode("utf-8"))
        return ok, get_password_hash(plain_password) if ok else None
    return pwd_context.verify_and_update(plain_password, stored_password)


def verify_api_key(candidate: str | None) -> bool:
    if not candidate or not settings.SYNC_API_KEY:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), settings.SYNC_API_KEY.encode("utf-8"))


def mint_session_token() -> str:
    return SESSION_TOKEN_PREFIX + secrets.token_urlsafe(32)


def token_digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None
