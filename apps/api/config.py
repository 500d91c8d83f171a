"""Application settings loaded once from the environment"""
from typing import Optional
from pydantic import BaseModel
import os
import logging

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


class DiscountPolicy(BaseModel):
    """Discount granted to members at partner facilities.

    Every active membership gets BASE_PERCENT. When FAMILY_PERCENT is set,
    memberships that cover at least one family member get that rate instead.
    """
    BASE_PERCENT: float = 10
    FAMILY_PERCENT: Optional[float] = None


class Settings(BaseModel):
    """Process-wide configuration, passed explicitly to the identity layer and services"""
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7
    BCRYPT_ROUNDS: int = 12

    # Upload store
    UPLOAD_DIR: str = os.path.join(BASE_DIR, "uploads")
    UPLOAD_URL_PREFIX: str = "uploads"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    MAX_CLINIC_PHOTOS: int = 6

    # Listings
    PENDING_APPLICATIONS_LIMIT: int = 200
    RECENT_ITEMS_LIMIT: int = 5

    FRONTEND_URL: str = "http://localhost:3000"
    RATE_LIMIT_ENABLED: bool = True

    DISCOUNT: DiscountPolicy = DiscountPolicy()


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return float(value)


def load_settings() -> Settings:
    """Build settings from environment variables"""
    secret_key = os.getenv("SECRET_KEY")
    if not secret_key:
        raise ValueError(
            "SECRET_KEY environment variable must be set. "
            "Generate a secure key with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
        )

    base_percent = _env_float("BASE_DISCOUNT_PERCENT")
    discount = DiscountPolicy(
        BASE_PERCENT=10 if base_percent is None else base_percent,
        FAMILY_PERCENT=_env_float("FAMILY_DISCOUNT_PERCENT"),
    )

    return Settings(
        SECRET_KEY=secret_key,
        ACCESS_TOKEN_EXPIRE_DAYS=int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7")),
        BCRYPT_ROUNDS=int(os.getenv("BCRYPT_ROUNDS", "12")),
        UPLOAD_DIR=os.getenv("UPLOAD_DIR", os.path.join(BASE_DIR, "uploads")),
        MAX_UPLOAD_BYTES=int(os.getenv("MAX_UPLOAD_MB", "10")) * 1024 * 1024,
        FRONTEND_URL=os.getenv("FRONTEND_URL", "http://localhost:3000"),
        RATE_LIMIT_ENABLED=os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true",
        DISCOUNT=discount,
    )


# Global instance, built on first use
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get current settings (also used as a FastAPI dependency)"""
    global _settings
    if _settings is None:
        _settings = load_settings()
        logger.info(
            f"Settings loaded: token lifetime {_settings.ACCESS_TOKEN_EXPIRE_DAYS}d, "
            f"upload dir {_settings.UPLOAD_DIR}"
        )
    return _settings
