"""Public Art API connection settings."""

from __future__ import annotations

from dataclasses import dataclass

from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .importing import ImportConfig

API_TIMEOUT_SECONDS = 30.0
HEALTH_TIMEOUT_SECONDS = 5.0
USER_AGENT = "artimport/0.1 (+https://publicartregistry.com)"


@dataclass(frozen=True, slots=True)
class ApiConfig:
    token: str
    admin_token: str | None
    resilience: ResilienceConfig

    @property
    def base_url(self) -> str:
        return self.resilience.base_url or ""


def get_api_config(
    config: ImportConfig,
    *,
    resilience: ResilienceConfig | None = None,
) -> ApiConfig:
    return ApiConfig(
        token=config.token,
        admin_token=config.admin_token,
        resilience=resilience
        or ResilienceConfig(
            name="public-art-api",
            base_url=config.api_endpoint.rstrip("/"),
            timeout_seconds=API_TIMEOUT_SECONDS,
            retry=RetryPolicy(total=config.max_retries),
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            default_headers={"User-Agent": USER_AGENT},
        ),
    )
