"""Registry for looking up a platform's transformer."""

from typing import Optional, Type

from crm_deals.models.settings import ImportSettings
from crm_deals.transformers.base import BaseTransformer
from crm_deals.transformers.folk import FolkTransformer
from crm_deals.transformers.hubspot import HubSpotTransformer
from crm_deals.transformers.pipedrive import PipedriveTransformer
from crm_deals.transformers.salesforce import SalesforceTransformer
from crm_deals.transformers.zoho import ZohoTransformer


class UnsupportedPlatformError(ValueError):
    """Raised for a platform name with no registered transformer."""


class TransformerRegistry:
    """Maps platform names to transformer classes."""

    _transformers: dict[str, Type[BaseTransformer]] = {
        "pipedrive": PipedriveTransformer,
        "salesforce": SalesforceTransformer,
        "hubspot": HubSpotTransformer,
        "zoho": ZohoTransformer,
        "folk": FolkTransformer,
    }

    @classmethod
    def get(cls, platform: str, settings: Optional[ImportSettings] = None) -> BaseTransformer:
        """Get a transformer instance for the given platform (case-insensitive)."""
        key = platform.lower().strip() if isinstance(platform, str) else ""
        transformer_cls = cls._transformers.get(key)
        if not transformer_cls:
            raise UnsupportedPlatformError(
                f"Unsupported platform: {platform}. Available: {list(cls._transformers.keys())}"
            )
        return transformer_cls(settings)

    @classmethod
    def available_platforms(cls) -> list[str]:
        """Return list of supported platform names."""
        return list(cls._transformers.keys())
