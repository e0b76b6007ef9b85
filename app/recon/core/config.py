from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "RECON-CLOUD"
    DATABASE_URL: str = "sqlite+pysqlite:///./recon.db"
    SYNC_API_KEY: str = ""
    SYNC_MAX_BODY_BYTES: int = 50 * 1024 * 1024
    SYNC_LOCK_TIMEOUT_SEC: float = 30.0
    SYNC_STATEMENT_TIMEOUT_MS: int = 60000
    REPORTS_MAX_ROWS: int = 100
    SESSION_BACKEND: str = "database"
    SESSION_TTL_MINUTES: int = 720
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "change-me"
    ADMIN_NAME: str = "Administrator"
    ONESIGNAL_APP_ID: str = ""
    ONESIGNAL_REST_API_KEY: str = ""
    ONESIGNAL_API_URL: str = "https://onesignal.com/api/v1/notifications"
    NOTIFY_ENABLED: bool = True
    NOTIFY_QUEUE_SIZE: int = 100
    NOTIFY_MAX_ATTEMPTS: int = 3
    NOTIFY_BACKOFF_MS: int = 500
    NOTIFY_TIMEOUT_SECONDS: float = 10.0
    METRICS_ENABLED: bool = True
    OPS_ENABLE_INTEGRITY_SCAN: bool = True
    LOGIN_PATH: str = "/login"

settings = Settings()
