from os import getenv


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    DATABASE_URL = getenv("DATABASE_URL", "sqlite:///./taskflow.db")

    JWT_SECRET = getenv("JWT_SECRET", "dev-secret-change-in-prod")
    JWT_EXPIRE_MIN = int(getenv("JWT_EXPIRE_MIN", "1440"))  # 1 jour

    # Pièces jointes
    STORAGE_BACKEND = getenv("STORAGE_BACKEND", "local")  # local | cloud
    UPLOAD_DIR = getenv("UPLOAD_DIR", "./uploads")
    CLOUD_STORAGE_URL = getenv("CLOUD_STORAGE_URL", "")
    CLOUD_STORAGE_TOKEN = getenv("CLOUD_STORAGE_TOKEN", "")
    CLOUD_STORAGE_TIMEOUT = int(getenv("CLOUD_STORAGE_TIMEOUT", "30"))
    MAX_ATTACHMENTS = int(getenv("MAX_ATTACHMENTS", "3"))
    MAX_ATTACHMENT_SIZE = int(getenv("MAX_ATTACHMENT_SIZE", str(10 * 1024 * 1024)))  # 10MB
    ALLOWED_ATTACHMENT_TYPES = tuple(
        t.strip() for t in getenv("ALLOWED_ATTACHMENT_TYPES", "application/pdf").split(",") if t.strip()
    )

    NOTIFICATIONS_ENABLED = _as_bool(getenv("NOTIFICATIONS_ENABLED", "true"))

    LOG_LEVEL = getenv("LOG_LEVEL", "INFO")
    LOG_FILE = getenv("LOG_FILE", "")
    CORS_ORIGINS = [o.strip() for o in getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()]


settings = Settings()
