"""Pipedrive fetcher: deals plus the full person record for each linked person."""

import logging

from crm_deals.fetchers.base import BaseFetcher

logger = logging.getLogger(__name__)

MAX_PERSON_LOOKUPS = 100


class PipedriveFetcher(BaseFetcher):
    """
    Pipedrive has no batch person endpoint, so persons are read one by one
    (up to MAX_PERSON_LOOKUPS) and merged into each deal's person_id.
    """

    platform = "pipedrive"
    display_name = "Pipedrive"
    DEFAULT_API_DOMAIN = "https://api.pipedrive.com"

    def fetch_raw(self) -> list[dict]:
        payload = self._fetch_primary("GET", f"{self.api_domain}/v1/deals", params={"limit": 500})
        deals = payload.get("data") or []
        logger.info("Fetched %d deals from Pipedrive", len(deals))

        person_ids: list = []
        for deal in deals:
            person_ref = deal.get("person_id")
            pid = person_ref.get("value") if isinstance(person_ref, dict) else None
            if pid and pid not in person_ids:
                person_ids.append(pid)

        persons: dict = {}
        for pid in person_ids[:MAX_PERSON_LOOKUPS]:
            result = self._fetch_secondary(f"person {pid}", "GET", f"{self.api_domain}/v1/persons/{pid}")
            person = (result or {}).get("data")
            if person:
                persons[person.get("id", pid)] = person
        logger.info("Fetched %d of %d persons from Pipedrive", len(persons), len(person_ids))

        enhanced = []
        for deal in deals:
            person_ref = deal.get("person_id")
            pid = person_ref.get("value") if isinstance(person_ref, dict) else None
            person = persons.get(pid) if pid else None
            if person:
                deal = {
                    **deal,
                    "person_id": {
                        **person_ref,
                        "name": person.get("name"),
                        "email": person.get("email"),
                        "phone": person.get("phone"),
                        "details": person,
                    },
                }
            enhanced.append(deal)
        return enhanced
