"""Registry for looking up a platform's fetcher."""

from typing import Optional, Type

import httpx

from crm_deals.fetchers.base import BaseFetcher
from crm_deals.fetchers.folk import FolkFetcher
from crm_deals.fetchers.hubspot import HubSpotFetcher
from crm_deals.fetchers.pipedrive import PipedriveFetcher
from crm_deals.fetchers.salesforce import SalesforceFetcher
from crm_deals.fetchers.zoho import ZohoFetcher
from crm_deals.models.settings import ImportSettings
from crm_deals.transformers.registry import UnsupportedPlatformError


class FetcherRegistry:
    """Maps platform names to fetcher classes."""

    _fetchers: dict[str, Type[BaseFetcher]] = {
        "pipedrive": PipedriveFetcher,
        "salesforce": SalesforceFetcher,
        "hubspot": HubSpotFetcher,
        "zoho": ZohoFetcher,
        "folk": FolkFetcher,
    }

    @classmethod
    def get(
        cls,
        platform: str,
        settings: ImportSettings,
        client: Optional[httpx.Client] = None,
    ) -> BaseFetcher:
        """Build the fetcher for a platform (case-insensitive) from settings."""
        fetcher_cls = cls._fetchers.get(platform.lower().strip())
        if not fetcher_cls:
            raise UnsupportedPlatformError(
                f"Unsupported platform: {platform}. Available: {list(cls._fetchers.keys())}"
            )
        return fetcher_cls.from_settings(settings, client=client)

    @classmethod
    def available_platforms(cls) -> list[str]:
        """Return list of platforms that can be fetched."""
        return list(cls._fetchers.keys())
