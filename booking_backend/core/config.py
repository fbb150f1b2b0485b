import os

from dotenv import load_dotenv

load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./booking.db")

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["http://localhost:4200"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

DEFAULT_SLOT_DURATION_MINUTES = int(os.getenv("DEFAULT_SLOT_DURATION_MINUTES", "15"))
MIN_SLOT_DURATION_MINUTES = int(os.getenv("MIN_SLOT_DURATION_MINUTES", "5"))
MAX_SLOT_DURATION_MINUTES = int(os.getenv("MAX_SLOT_DURATION_MINUTES", "240"))
MAX_AVAILABILITY_LIMIT = int(os.getenv("MAX_AVAILABILITY_LIMIT", "500"))
# Widest real-world offset is UTC+14.
MAX_UTC_OFFSET_MINUTES = int(os.getenv("MAX_UTC_OFFSET_MINUTES", "840"))
MAX_PATIENT_NOTES_LENGTH = int(os.getenv("MAX_PATIENT_NOTES_LENGTH", "2000"))
PRACTITIONER_LOCK_STRIPES = int(os.getenv("PRACTITIONER_LOCK_STRIPES", "64"))

ENABLE_DEV_SEED = _get_bool(os.getenv("ENABLE_DEV_SEED"), default=APP_ENV.lower() != "production")

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
