"""HubSpot deals -> canonical deals, with per-call contact deduplication."""

import logging
from typing import Optional

from crm_deals.models.deal import Deal, DealContact
from crm_deals.models.raw import RawDeal
from crm_deals.stages import map_stage
from crm_deals.transformers.base import (
    UNKNOWN_COMPANY,
    BaseTransformer,
    TransformContext,
    as_dict,
    full_name,
    new_id,
    optional_text,
    parse_amount,
    text,
)

logger = logging.getLogger(__name__)


def contact_email(contact: dict) -> str:
    """Email from a merged HubSpot contact, including raw `properties`."""
    return (
        text(contact.get("email"))
        or text(contact.get("primary_email"))
        or text(contact.get("email_address"))
        or text(as_dict(contact.get("properties")).get("email"))
    )


class HubSpotTransformer(BaseTransformer):
    """
    Transformer for merged HubSpot deals (`stage` is the dealstage internal id).

    Deals sharing an external contact id yield one DealContact, attached to the
    first deal that references it. Later deals keep the contact's name and email
    as their primary contact but get no contact row.
    """

    platform = "hubspot"

    def transform_record(
        self, raw: RawDeal, ctx: TransformContext
    ) -> tuple[Deal, Optional[DealContact]]:
        d = raw.data
        contact = as_dict(d.get("contacts"))

        stage = map_stage(self.platform, d.get("stage"))
        name = full_name(contact.get("first_name"), contact.get("last_name"))
        email = contact_email(contact)

        deal = self.build_deal(
            ctx,
            stage=stage,
            company_name=text(contact.get("company")) or UNKNOWN_COMPANY,
            value_amount=parse_amount(d.get("value")),
            value_currency=text(d.get("currency")) or "USD",
            deal_title=optional_text(d.get("name")),
            close_date=optional_text(d.get("closeDate")),
            primary_contact=name,
            primary_email=email or text(d.get("email")) or text(d.get("primary_email")),
            created_at=text(d.get("created_at")),
            updated_at=text(d.get("updated_at")),
        )

        external_id = text(contact.get("id"))
        if external_id:
            if external_id in ctx.contact_ids:
                logger.debug("HubSpot contact %s already imported; no new row", external_id)
                return deal, None
            ctx.contact_ids[external_id] = new_id()
        elif not (name or email):
            return deal, None

        return deal, self.build_contact(
            ctx,
            deal.id,
            row_id=ctx.contact_ids.get(external_id),
            name=name,
            email=email,
            phone=optional_text(contact.get("phone")),
            created_at=text(contact.get("created_at")),
        )
