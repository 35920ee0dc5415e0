"""Zoho CRM deals -> canonical deals.

The fetcher returns Zoho's two listings side by side:
``[{"data": [deal, ...]}, {"data": [contact, ...]}]``. Deals only carry a
partial ``Contact_Name`` lookup, so the contacts listing is indexed by id
to backfill email, phone and audit fields. A flat list of deals is also
accepted.
"""

from typing import Any, Optional

from crm_deals.models.deal import Deal, DealContact
from crm_deals.models.raw import RawDeal
from crm_deals.stages import map_stage
from crm_deals.transformers.base import (
    UNKNOWN_COMPANY,
    BaseTransformer,
    TransformContext,
    as_dict,
    as_str_list,
    optional_text,
    parse_amount,
    parse_probability,
    text,
)


def _listing(item: Any) -> Optional[list]:
    """The `data` list of a {"data": [...]} listing, else None."""
    data = as_dict(item).get("data")
    return data if isinstance(data, list) else None


def _lookup_name(value: Any) -> str:
    """Zoho lookup fields are {"name": ..., "id": ...}; older payloads use plain strings."""
    if isinstance(value, dict):
        return text(value.get("name"))
    return text(value)


class ZohoTransformer(BaseTransformer):
    """Transformer for Zoho CRM v2 Deals (PascalCase field names)."""

    platform = "zoho"

    def split_payload(self, records: list[Any]) -> tuple[list[Any], list[Any]]:
        deals = _listing(records[0]) if records else None
        if deals is None:
            return records, []
        contacts = _listing(records[1]) if len(records) > 1 else None
        return deals, contacts or []

    def transform_record(
        self, raw: RawDeal, ctx: TransformContext
    ) -> tuple[Deal, Optional[DealContact]]:
        d = raw.data
        contact_ref = as_dict(d.get("Contact_Name"))
        contact_id = text(contact_ref.get("id"))
        full = ctx.lookup.get(contact_id, {}) if contact_id else {}

        stage = map_stage(self.platform, d.get("Stage"))
        created_at = text(d.get("Created_Time"))
        updated_at = text(d.get("Modified_Time"))

        deal = self.build_deal(
            ctx,
            stage=stage,
            company_name=_lookup_name(d.get("Account_Name")) or UNKNOWN_COMPANY,
            value_amount=parse_amount(d.get("Amount")),
            value_currency=text(d.get("Currency")) or "USD",
            probability=parse_probability(d.get("Probability")),
            deal_title=optional_text(d.get("Deal_Name")),
            close_date=optional_text(d.get("Closing_Date")),
            tags=as_str_list(d.get("Tag")),
            primary_contact=text(contact_ref.get("name")),
            primary_email=(
                text(d.get("Contact_Email"))
                or text(d.get("contact_email"))
                or text(contact_ref.get("email"))
                or text(full.get("Email"))
                or text(full.get("email"))
            ),
            created_at=created_at,
            updated_at=updated_at,
        )

        if not contact_id:
            return deal, None

        return deal, self.build_contact(
            ctx,
            deal.id,
            name=text(contact_ref.get("name")) or text(full.get("Full_Name")),
            email=(
                text(full.get("Email"))
                or text(full.get("email"))
                or text(d.get("Contact_Email"))
                or text(d.get("contact_email"))
            ),
            phone=optional_text(full.get("Phone") or d.get("Contact_Phone")),
            last_contacted=optional_text(full.get("Last_Activity_Time")),
            notes=optional_text(full.get("Description")),
            created_at=text(full.get("Created_Time")) or created_at,
            updated_at=text(full.get("Modified_Time")) or updated_at,
        )
