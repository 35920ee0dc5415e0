"""Folk fetcher: people, each carrying its group custom field values."""

import logging
import os
from typing import Optional

import httpx

from crm_deals.fetchers.base import BaseFetcher
from crm_deals.models.settings import ImportSettings

logger = logging.getLogger(__name__)


class FolkFetcher(BaseFetcher):
    """Reads /people from the Folk API with an API key."""

    platform = "folk"
    display_name = "Folk"
    DEFAULT_API_DOMAIN = "https://api.folk.app"

    def __init__(
        self,
        access_token: str,
        api_domain: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        api_version: Optional[str] = None,
    ):
        super().__init__(access_token, api_domain, client=client)
        self.api_version = api_version or os.environ.get("FOLK_API_VERSION") or "v1"

    @classmethod
    def from_settings(
        cls,
        settings: ImportSettings,
        client: Optional[httpx.Client] = None,
    ) -> "FolkFetcher":
        fetcher = super().from_settings(settings, client=client)
        if settings.api_version:
            fetcher.api_version = settings.api_version
        return fetcher

    def fetch_raw(self) -> list[dict]:
        payload = self._fetch_primary("GET", f"{self.api_domain}/{self.api_version}/people")
        people = (payload.get("data") or {}).get("items") or []
        logger.info("Fetched %d people from Folk", len(people))
        return people
