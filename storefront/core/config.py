# storefront/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Postgres connection string; sqlite:// works locally)
      - JWT_SECRET (secret used to verify bearer tokens)

    Optional:
      - STRIPE_SECRET_KEY (needed for checkout, refunds, hosted sessions)
      - PAYMENT_CURRENCY (defaults to "usd")
      - CHECKOUT_SUCCESS_URL / CHECKOUT_CANCEL_URL (hosted checkout redirects)
    """

    PROJECT_NAME: str = "Storefront API"
    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str

    # JWT verification (tokens are issued elsewhere)
    JWT_SECRET: str
    JWT_ALG: str = "HS256"

    # Stripe
    STRIPE_SECRET_KEY: str | None = None
    PAYMENT_CURRENCY: str = "usd"
    CHECKOUT_SUCCESS_URL: str = (
        "http://localhost:5173/CheckoutResult?status=success"
        "&session_id={CHECKOUT_SESSION_ID}"
    )
    CHECKOUT_CANCEL_URL: str = "http://localhost:5173/CheckoutResult?status=cancel"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
