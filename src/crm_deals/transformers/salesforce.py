"""Salesforce opportunities -> canonical deals."""

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
    optional_text,
    parse_amount,
    parse_probability,
    text,
)

_CONTACT_KEYS = ("id", "first_name", "last_name", "email")


class SalesforceTransformer(BaseTransformer):
    """
    Transformer for merged Salesforce opportunities: StageName as free-text
    `stage`, the contact-role contact nested under `contacts`.
    """

    platform = "salesforce"

    def transform_record(
        self, raw: RawDeal, ctx: TransformContext
    ) -> tuple[Deal, Optional[DealContact]]:
        d = raw.data
        contact = as_dict(d.get("contacts"))

        stage = map_stage(self.platform, d.get("stage"))
        name = full_name(contact.get("first_name"), contact.get("last_name"))
        created_at = text(d.get("createdAt"))
        updated_at = text(d.get("updatedAt"))

        deal = self.build_deal(
            ctx,
            stage=stage,
            company_name=text(contact.get("company")) or UNKNOWN_COMPANY,
            value_amount=parse_amount(d.get("value")),
            value_currency=text(d.get("currency")) or "USD",
            probability=parse_probability(d.get("probability")),
            deal_title=optional_text(d.get("name")),
            close_date=optional_text(d.get("closeDate")),
            primary_contact=name,
            primary_email=(
                text(contact.get("email"))
                or text(contact.get("primary_email"))
                or text(contact.get("email_address"))
                or text(d.get("email"))
                or text(d.get("primary_email"))
            ),
            created_at=created_at,
            updated_at=updated_at,
        )

        if not any(contact.get(k) for k in _CONTACT_KEYS):
            return deal, None

        return deal, self.build_contact(
            ctx,
            deal.id,
            name=name,
            email=(
                text(contact.get("email"))
                or text(contact.get("primary_email"))
                or text(contact.get("email_address"))
            ),
            phone=optional_text(contact.get("phone")),
            created_at=created_at,
            updated_at=updated_at,
        )
