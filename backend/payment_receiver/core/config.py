import logging
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

PRODUCTION_ENVIRONMENTS = {"production", "prod"}


class Settings(BaseSettings):
    provider_base_url: str = "https://api.polar.sh/v1"
    provider_api_key: str | None = None
    provider_webhook_secret: str | None = None
    environment: str = "production"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def warn_if_unverified(self) -> "Settings":
        """Flag deployments that accept webhooks without checking them.

        A missing webhook secret disables signature checks and a missing API
        key disables the provider lookup. Both are allowed, but never quietly.
        """
        level = logging.ERROR if self.is_production else logging.WARNING
        if not self.provider_webhook_secret:
            logger.log(
                level,
                "PROVIDER_WEBHOOK_SECRET is not set: webhook signatures will NOT be verified",
            )
        if not self.provider_api_key:
            logger.log(
                level,
                "PROVIDER_API_KEY is not set: payments will NOT be confirmed with the provider",
            )
        return self

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in PRODUCTION_ENVIRONMENTS


@lru_cache
def get_settings() -> Settings:
    return Settings()
