import logging
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

_DEFAULT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    APP_ENV: str = "development"
    BASE_URL: str = "http://localhost:8000"
    SECRET_KEY: str = _DEFAULT_SECRET
    DATABASE_URL: str = "sqlite:///./data/labtrack.db"
    FIRST_ADMIN_USER: str = "admin"
    FIRST_ADMIN_PASS: str = "admin123"

    # Číslování dokumentů: {n}/{TYPE}-{suffix}/{ROMAN}/{year}
    DOCUMENT_CODE_SUFFIX: str = "PBI"

    # Reminder offsets (days before due date)
    CALIBRATION_REMINDER_DAYS: int = 30
    RENTAL_REMINDER_DAYS: int = 7
    MAINTENANCE_REMINDER_DAYS: int = 7
    MAINTENANCE_FOLLOWUP_DAYS: int = 30
    # opakované upozornění v den splatnosti a po termínu, nejdřív po N hodinách
    REMINDER_RENOTIFY_HOURS: int = 12

    # Client poller
    POLL_INITIAL_DELAY: float = 3.0          # seconds
    POLL_INTERVAL: float = 300.0             # seconds
    POLL_MIN_SPACING: float = 300.0          # seconds between two checks
    POLL_VISIBILITY_MIN_SPACING: float = 60.0
    DISPLAY_DAILY_CAP: int = 2
    DISPLAY_MAX_PER_FETCH: int = 3

    # Email channel (prázdný host = jen log)
    SMTP_HOST: str = ""
    SMTP_PORT: int = 25
    SMTP_SENDER: str = "labtrack@localhost"
    SMTP_RECIPIENT: str = ""

    class Config:
        env_file = ".env"


settings = Settings()

if settings.SECRET_KEY == _DEFAULT_SECRET:
    if settings.APP_ENV == "production":
        raise RuntimeError("SECRET_KEY musí být nastaven v produkci! Zkontrolujte .env soubor.")
    else:
        logger.warning("SECRET_KEY má výchozí hodnotu, nastavte ji v .env pro produkci!")

if settings.FIRST_ADMIN_PASS == "admin123":
    logger.warning("FIRST_ADMIN_PASS má výchozí hodnotu, doporučeno změnit v .env")
