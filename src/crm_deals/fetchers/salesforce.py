"""Salesforce fetcher: opportunities joined to contacts through contact roles."""

import logging
from typing import Any, Optional

from crm_deals.fetchers.base import BaseFetcher

logger = logging.getLogger(__name__)

API_VERSION = "v59.0"
OPPORTUNITY_QUERY = (
    "SELECT Id, Name, Amount, CloseDate, StageName, Description, Probability, "
    "CreatedDate, LastModifiedDate FROM Opportunity LIMIT 200"
)
CONTACT_ROLE_QUERY = "SELECT OpportunityId, ContactId FROM OpportunityContactRole"


def _soql_quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


class SalesforceFetcher(BaseFetcher):
    """Runs SOQL queries against the instance's REST query endpoint."""

    platform = "salesforce"
    display_name = "Salesforce"

    def _query_url(self) -> str:
        return f"{self.api_domain}/services/data/{API_VERSION}/query"

    def _secondary_records(self, what: str, query: str) -> list[dict]:
        result: Optional[Any] = self._fetch_secondary(what, "GET", self._query_url(), params={"q": query})
        return (result or {}).get("records") or []

    def fetch_raw(self) -> list[dict]:
        payload = self._fetch_primary("GET", self._query_url(), params={"q": OPPORTUNITY_QUERY})
        opportunities = payload.get("records") or []
        logger.info("Fetched %d opportunities from Salesforce", len(opportunities))

        contact_by_opp: dict[str, str] = {}
        for role in self._secondary_records("contact roles", CONTACT_ROLE_QUERY):
            if role.get("OpportunityId") and role.get("ContactId"):
                contact_by_opp[role["OpportunityId"]] = role["ContactId"]

        contact_ids = list(dict.fromkeys(contact_by_opp.get(op.get("Id")) for op in opportunities))
        contact_ids = [cid for cid in contact_ids if cid]

        contacts: dict[str, dict] = {}
        if contact_ids:
            query = (
                "SELECT Id, FirstName, LastName, Email, Phone, MailingStreet, Account.Name "
                f"FROM Contact WHERE Id IN ({', '.join(_soql_quote(c) for c in contact_ids)})"
            )
            for c in self._secondary_records("contacts", query):
                contacts[c.get("Id")] = {
                    "id": c.get("Id"),
                    "first_name": c.get("FirstName"),
                    "last_name": c.get("LastName"),
                    "email": c.get("Email"),
                    "phone": c.get("Phone"),
                    "address": c.get("MailingStreet"),
                    "company": (c.get("Account") or {}).get("Name"),
                }
            logger.info("Fetched %d contacts from Salesforce", len(contacts))

        return [
            {
                "id": op.get("Id"),
                "name": op.get("Name"),
                "description": op.get("Description"),
                "value": op.get("Amount"),
                "probability": op.get("Probability"),
                "stage": op.get("StageName"),
                "closeDate": op.get("CloseDate"),
                "createdAt": op.get("CreatedDate"),
                "updatedAt": op.get("LastModifiedDate"),
                "contacts": contacts.get(contact_by_opp.get(op.get("Id"), "")),
            }
            for op in opportunities
        ]
