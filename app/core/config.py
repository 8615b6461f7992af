import os

# Настройки PostgreSQL
POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
POSTGRES_DB = os.getenv("POSTGRES_DB", "turf")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "db")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}",
)

# Настройки среды
ENVIRONMENT = os.getenv("ENVIRONMENT", "production").lower()
DEBUG = ENVIRONMENT in ["development", "dev"]

# Caller tokens are issued elsewhere, we only verify them
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Настройки retry для базы данных
DB_RETRY_ATTEMPTS = int(os.getenv("DB_RETRY_ATTEMPTS", "3"))
DB_RETRY_DELAY = float(os.getenv("DB_RETRY_DELAY", "1.0"))
DB_RETRY_BACKOFF_FACTOR = float(os.getenv("DB_RETRY_BACKOFF_FACTOR", "2.0"))

# Настройки логирования
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if not DEBUG else "DEBUG")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json" if not DEBUG else "text")

# Настройки приложения
APP_NAME = os.getenv("APP_NAME", "Turf Booking API")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
    ).split(",")
    if origin.strip()
]

# Rate limiting (slowapi)
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
RATE_LIMIT_STORAGE_URI = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")

# Booking rules
SLOT_DURATION_MINUTES = 15
RECURRING_DEFAULT_WINDOW_MONTHS = int(os.getenv("RECURRING_DEFAULT_WINDOW_MONTHS", "3"))

# Expiry sweeper
EXPIRY_SWEEPER_ENABLED = os.getenv("EXPIRY_SWEEPER_ENABLED", "true").lower() == "true"
EXPIRY_SWEEP_INTERVAL_SECONDS = int(os.getenv("EXPIRY_SWEEP_INTERVAL_SECONDS", "300"))

# Defaults for the settings singleton
DEFAULT_TURF_NAME = os.getenv("DEFAULT_TURF_NAME", "Pro Sports Turf")
DEFAULT_OPENING_TIME = os.getenv("DEFAULT_OPENING_TIME", "06:00")
DEFAULT_CLOSING_TIME = os.getenv("DEFAULT_CLOSING_TIME", "23:00")
DEFAULT_WEEKEND_DAYS = [
    day.strip().upper()
    for day in os.getenv("DEFAULT_WEEKEND_DAYS", "SAT,SUN").split(",")
    if day.strip()
]
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "INR")


# Валидация критичных настроек
def validate_config():
    """Валидация конфигурации при запуске"""
    errors = []

    if not JWT_SECRET_KEY and not DEBUG:
        errors.append("JWT_SECRET_KEY is required")

    if not DATABASE_URL:
        errors.append("DATABASE_URL or POSTGRES_* settings are required")

    if DB_RETRY_ATTEMPTS < 1:
        errors.append("DB_RETRY_ATTEMPTS must be >= 1")

    if DB_RETRY_DELAY < 0:
        errors.append("DB_RETRY_DELAY must be >= 0")

    if RECURRING_DEFAULT_WINDOW_MONTHS < 1:
        errors.append("RECURRING_DEFAULT_WINDOW_MONTHS must be >= 1")

    if EXPIRY_SWEEP_INTERVAL_SECONDS <= 0:
        errors.append("EXPIRY_SWEEP_INTERVAL_SECONDS must be > 0")

    if not DEFAULT_WEEKEND_DAYS:
        errors.append("DEFAULT_WEEKEND_DAYS must name at least one day")

    if errors:
        raise ValueError(f"Configuration errors: {'; '.join(errors)}")
