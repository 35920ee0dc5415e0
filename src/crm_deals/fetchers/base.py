"""Abstract base class for CRM fetchers that pull raw deal payloads over HTTP."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from crm_deals.models.settings import ImportSettings

logger = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """Raised when a CRM's primary deal listing cannot be fetched."""


class BaseFetcher(ABC):
    """
    Pulls raw deal records from one CRM API, reshaped into the payload the
    matching transformer expects. Secondary lookups (persons, contacts) that
    fail are logged and skipped; a failed primary listing raises FetchError.
    """

    platform: str = ""
    display_name: str = ""
    DEFAULT_API_DOMAIN: Optional[str] = None

    DEFAULT_HEADERS = {
        "User-Agent": "crm-deals/0.1",
        "Accept": "application/json",
        "Content-Type": "application/json",
    }

    def __init__(
        self,
        access_token: str,
        api_domain: Optional[str] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.access_token = access_token
        api_domain = api_domain or self.DEFAULT_API_DOMAIN
        if not api_domain:
            raise FetchError(f"{self.display_name} needs an API domain (instance URL).")
        self.api_domain = api_domain.rstrip("/")
        self._client = client or httpx.Client(
            timeout=30.0,
            follow_redirects=True,
            headers=self.DEFAULT_HEADERS,
        )

    @classmethod
    def from_settings(
        cls,
        settings: ImportSettings,
        client: Optional[httpx.Client] = None,
    ) -> "BaseFetcher":
        """Build a fetcher from settings, falling back to <PLATFORM>_ACCESS_TOKEN / _API_DOMAIN."""
        token = settings.token_for(cls.platform)
        if not token:
            raise FetchError(
                f"No access token for {cls.display_name}. "
                f"Set access_token in settings or {cls.platform.upper()}_ACCESS_TOKEN."
            )
        return cls(token, settings.api_domain_for(cls.platform), client=client)

    def auth_headers(self) -> dict[str, str]:
        """Authorization header for this CRM."""
        return {"Authorization": f"Bearer {self.access_token}"}

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send a request and return decoded JSON ({} for an empty body)."""
        resp = self._client.request(method, url, headers=self.auth_headers(), **kwargs)
        resp.raise_for_status()
        if not resp.content:
            return {}
        return resp.json()

    def _fetch_primary(self, method: str, url: str, **kwargs: Any) -> Any:
        """Request whose failure aborts the fetch."""
        try:
            return self._request(method, url, **kwargs)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 401:
                raise FetchError(
                    f"{self.display_name} authentication failed. Please reconnect your account."
                ) from e
            raise FetchError(
                f"Failed to fetch deals from {self.display_name} (HTTP {status})"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch deals from {self.display_name}: {e}") from e

    def _fetch_secondary(self, what: str, method: str, url: str, **kwargs: Any) -> Optional[Any]:
        """Request whose failure is logged and skipped; returns None on failure."""
        try:
            return self._request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("Failed to fetch %s from %s, continuing without them: %s", what, self.display_name, e)
            return None

    @abstractmethod
    def fetch_raw(self) -> Any:
        """Return the raw payload to hand to transform_deals."""
