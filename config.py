import logging.config
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load environment variables
load_dotenv()


class Settings(BaseSettings):
    DATABASE_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "jd_jewellers"

    STORE_NAME: str = "JD JEWELLERS"
    CURRENCY: str = "INR"

    # Shipping
    FREE_SHIPPING_THRESHOLD: float = 2000
    SHIPPING_FEE: float = 100

    # Cart persistence: "mongo" or "memory"
    CART_BACKEND: Literal["mongo", "memory"] = "mongo"
    CART_WRITE_RETRIES: int = 5

    # Checkout form shape for this deployment
    CHECKOUT_ADDRESS_VARIANT: Literal["flat", "split"] = "split"

    # Order notifications
    WHATSAPP_NUMBER: str = "919079998370"
    NOTIFY_TIMEZONE: str = "Asia/Kolkata"
    ORDER_NOTIFY_URL: Optional[str] = None
    ORDER_NOTIFY_TIMEOUT: float = 10

    # Uploads
    MEDIA_ROOT: str = "media"
    MEDIA_URL: str = "/media"

    # Emails granted the admin role on sign-up
    ADMIN_EMAILS: List[str] = []

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["verbose", "json"] = "verbose"
    PORT: int = 8000


settings = Settings()


# Logging configuration
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {message}",
            "style": "{",
        },
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": settings.LOG_FORMAT,
        },
    },
    "root": {
        "handlers": ["console"],
        "level": settings.LOG_LEVEL,
    },
    "loggers": {
        "uvicorn": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
    },
}


def configure_logging():
    logging.config.dictConfig(LOGGING)
