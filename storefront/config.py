"""Runtime configuration for the storefront (read from env, overridable in tests)."""
import os
from typing import NamedTuple

from dotenv import load_dotenv

# Values already present in the environment win over the .env file
load_dotenv()


class Settings(NamedTuple):
    database_url: str
    jwt_secret: str
    jwt_expires_days: int
    braintree_environment: str
    braintree_merchant_id: str
    braintree_public_key: str
    braintree_private_key: str
    dev_mode: str
    log_level: str
    port: int


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./storefront.db"),
        jwt_secret=os.getenv("JWT_SECRET", "dev-secret"),
        jwt_expires_days=int(os.getenv("JWT_EXPIRES_DAYS", "7")),
        braintree_environment=os.getenv("BRAINTREE_ENVIRONMENT", "sandbox"),
        braintree_merchant_id=os.getenv("BRAINTREE_MERCHANT_ID", ""),
        braintree_public_key=os.getenv("BRAINTREE_PUBLIC_KEY", ""),
        braintree_private_key=os.getenv("BRAINTREE_PRIVATE_KEY", ""),
        dev_mode=os.getenv("DEV_MODE", "development"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        port=int(os.getenv("PORT", "6060")),
    )


state = load_settings()


def get_settings() -> Settings:
    return state


def set_settings(**overrides) -> Settings:
    global state
    state = state._replace(**overrides)
    return state
