"""Cloudflare cache purge, used after every student write."""

import logging
from dataclasses import dataclass, field

import httpx

from educationelly.core import config

logger = logging.getLogger(__name__)

CLOUDFLARE_API_BASE = "https://api.cloudflare.com/client/v4"


@dataclass
class PurgeResult:
    success: bool
    reason: str | None = None
    errors: list = field(default_factory=list)
    error: str | None = None


class CloudflareCacheInvalidator:
    """Best-effort purge of cached URLs. Never raises; callers inspect the result."""

    def __init__(
        self,
        api_token: str,
        zone_id: str,
        public_url: str,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_token = api_token
        self.zone_id = zone_id
        self.public_url = public_url.rstrip("/")
        self._client = client or httpx.Client()

    @classmethod
    def from_config(cls) -> "CloudflareCacheInvalidator":
        return cls(config.CLOUDFLARE_API_TOKEN, config.CLOUDFLARE_ZONE_ID, config.PUBLIC_URL)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_token and self.zone_id)

    def invalidate(self, urls: list[str] | str) -> PurgeResult:
        files = [urls] if isinstance(urls, str) else list(urls)

        if not self.is_configured:
            logger.info("Cloudflare credentials not configured, skipping cache purge")
            return PurgeResult(success=False, reason="not_configured")

        try:
            response = self._client.post(
                f"{CLOUDFLARE_API_BASE}/zones/{self.zone_id}/purge_cache",
                headers={"Authorization": f"Bearer {self.api_token}"},
                json={"files": files},
            )
            result = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Cloudflare cache purge error: %s", exc)
            return PurgeResult(success=False, error=str(exc))

        if not isinstance(result, dict):
            logger.error("Cloudflare cache purge returned unexpected body (HTTP %s): %r", response.status_code, result)
            return PurgeResult(success=False, error=f"Unexpected response (HTTP {response.status_code})")

        if result.get("success"):
            logger.info("Cloudflare cache purged: %s", files)
            return PurgeResult(success=True)

        errors = result.get("errors") or []
        logger.error("Cloudflare cache purge failed: %s", errors)
        return PurgeResult(success=False, errors=errors)

    def purge_students_cache(self) -> PurgeResult:
        return self.invalidate([f"{self.public_url}/students"])

    def close(self) -> None:
        self._client.close()
