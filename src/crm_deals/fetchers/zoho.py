"""Zoho CRM fetcher: Deals and Contacts listings returned side by side."""

import logging

from crm_deals.fetchers.base import BaseFetcher

logger = logging.getLogger(__name__)


class ZohoFetcher(BaseFetcher):
    """
    Returns ``[{"data": deals}, {"data": contacts}]``; the Zoho transformer
    uses the contacts listing to fill in what deal lookups leave out.
    """

    platform = "zoho"
    display_name = "Zoho"
    DEFAULT_API_DOMAIN = "https://www.zohoapis.com"

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Zoho-oauthtoken {self.access_token}"}

    def fetch_raw(self) -> list[dict]:
        payload = self._fetch_primary("GET", f"{self.api_domain}/crm/v2/Deals", params={"per_page": 200})
        deals = payload.get("data") or []
        logger.info("Fetched %d deals from Zoho", len(deals))

        result = self._fetch_secondary(
            "contacts", "GET", f"{self.api_domain}/crm/v2/Contacts", params={"per_page": 200}
        )
        contacts = (result or {}).get("data") or []
        logger.info("Fetched %d contacts from Zoho", len(contacts))

        return [{"data": deals}, {"data": contacts}]
