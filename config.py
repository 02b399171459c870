"""
Runtime configuration for the storefront API.

Values come from the environment (a local .env file is loaded first).
"""
import os
from functools import lru_cache
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


class Settings(BaseModel):
    database_url: Optional[str] = None
    database_name: str = "storefront"

    email_provider: Literal["console", "smtp", "resend"] = "console"
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    resend_api_key: Optional[str] = None
    email_from: str = "no-reply@example.com"
    email_from_name: str = "Classic Carrry"
    owner_email: str = "owner@example.com"

    store_name: str = "Classic Carrry"
    currency_symbol: str = "Rs"
    order_prefix: str = "CC"
    frontend_url: str = "http://localhost:5173"

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            database_url=os.getenv("DATABASE_URL") or None,
            database_name=os.getenv("DATABASE_NAME", "storefront"),
            email_provider=os.getenv("EMAIL_PROVIDER", "console").strip().lower(),
            smtp_host=os.getenv("SMTP_HOST") or None,
            smtp_port=_env_int("SMTP_PORT", 587),
            smtp_user=os.getenv("SMTP_USER") or None,
            smtp_password=os.getenv("SMTP_PASSWORD") or None,
            smtp_use_tls=_env_bool("SMTP_USE_TLS", True),
            resend_api_key=os.getenv("RESEND_API_KEY") or None,
            email_from=os.getenv("EMAIL_FROM", "no-reply@example.com"),
            email_from_name=os.getenv("EMAIL_FROM_NAME", "Classic Carrry"),
            owner_email=os.getenv("OWNER_EMAIL", "owner@example.com"),
            store_name=os.getenv("STORE_NAME", "Classic Carrry"),
            currency_symbol=os.getenv("CURRENCY_SYMBOL", "Rs"),
            order_prefix=os.getenv("ORDER_PREFIX", "CC"),
            frontend_url=os.getenv("FRONTEND_URL", "http://localhost:5173"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()] or ["*"],
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            port=_env_int("PORT", 8000),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
