"""HubSpot fetcher: deals with associated contacts read in one batch."""

import logging

from crm_deals.fetchers.base import BaseFetcher

logger = logging.getLogger(__name__)

DEAL_PROPERTIES = [
    "dealname",
    "description",
    "amount",
    "currency",
    "hs_deal_stage_probability",
    "closedate",
    "hs_actual_closed_date",
    "dealstage",
]
CONTACT_PROPERTIES = ["email", "firstname", "lastname", "phone", "company", "address"]


class HubSpotFetcher(BaseFetcher):
    """Reads deals and their first associated contact from the CRM v3 API."""

    platform = "hubspot"
    display_name = "HubSpot"
    DEFAULT_API_DOMAIN = "https://api.hubapi.com"

    def fetch_raw(self) -> list[dict]:
        payload = self._fetch_primary(
            "GET",
            f"{self.api_domain}/crm/v3/objects/deals",
            params={
                "associations": "contacts,companies",
                "properties": ",".join(DEAL_PROPERTIES),
                "limit": 100,
            },
        )
        deals = payload.get("results") or []
        logger.info("Fetched %d deals from HubSpot", len(deals))

        contact_ids: list[str] = []
        for deal in deals:
            for assoc in ((deal.get("associations") or {}).get("contacts") or {}).get("results") or []:
                if assoc.get("id") and assoc["id"] not in contact_ids:
                    contact_ids.append(assoc["id"])

        contacts: dict[str, dict] = {}
        if contact_ids:
            result = self._fetch_secondary(
                "contacts",
                "POST",
                f"{self.api_domain}/crm/v3/objects/contacts/batch/read",
                json={
                    "properties": CONTACT_PROPERTIES,
                    "inputs": [{"id": cid} for cid in contact_ids],
                },
            )
            for contact in (result or {}).get("results") or []:
                contacts[str(contact.get("id"))] = contact.get("properties") or {}
            logger.info("Fetched %d contacts from HubSpot", len(contacts))

        return [self._merge(deal, contacts) for deal in deals]

    @staticmethod
    def _merge(deal: dict, contacts: dict[str, dict]) -> dict:
        props = deal.get("properties") or {}
        assoc = ((deal.get("associations") or {}).get("contacts") or {}).get("results") or []
        contact_id = str(assoc[0].get("id")) if assoc else None
        contact = contacts.get(contact_id) if contact_id else None
        return {
            "id": deal.get("id"),
            "name": props.get("dealname"),
            "description": props.get("description"),
            "value": props.get("amount"),
            "currency": props.get("currency"),
            "probability": props.get("hs_deal_stage_probability"),
            "closeDate": props.get("closedate"),
            "stage": props.get("dealstage"),
            "created_at": deal.get("createdAt"),
            "updated_at": deal.get("updatedAt"),
            "contacts": (
                {
                    "id": contact_id,
                    "first_name": contact.get("firstname"),
                    "last_name": contact.get("lastname"),
                    "email": contact.get("email"),
                    "phone": contact.get("phone"),
                    "address": contact.get("address"),
                    "company": contact.get("company"),
                    "created_at": contact.get("createdate"),
                }
                if contact
                else None
            ),
        }
