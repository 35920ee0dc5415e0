"""Pipedrive deals -> canonical deals.

Pipedrive keys stages by numeric stage_id and nests the person under
person_id. The person's email can be a list of {"value": ...} objects, a
bare string, or missing; the fetcher also merges the full person record
under person_id.details.
"""

from typing import Optional

from crm_deals.models.deal import Deal, DealContact
from crm_deals.models.raw import RawDeal
from crm_deals.stages import map_stage
from crm_deals.transformers.base import (
    UNKNOWN_COMPANY,
    BaseTransformer,
    TransformContext,
    as_dict,
    contact_value,
    optional_text,
    parse_amount,
    parse_probability,
    text,
)

_PERSON_KEYS = ("value", "id", "name", "email")


def person_email(person: dict) -> str:
    """Email from a Pipedrive person: email list/string, then primary_email, then email_address."""
    return (
        contact_value(person.get("email"))
        or text(person.get("primary_email"))
        or text(person.get("email_address"))
    )


class PipedriveTransformer(BaseTransformer):
    """Transformer for Pipedrive /v1/deals records."""

    platform = "pipedrive"

    def transform_record(
        self, raw: RawDeal, ctx: TransformContext
    ) -> tuple[Deal, Optional[DealContact]]:
        d = raw.data
        person = as_dict(d.get("person_id"))
        details = as_dict(person.get("details"))
        org = as_dict(d.get("org_id"))

        stage = map_stage(self.platform, d.get("stage_id"))
        email = person_email(person) or person_email(details)
        contact_name = text(person.get("name")) or text(details.get("name"))
        created_at = text(d.get("add_time"))
        updated_at = text(d.get("update_time"))
        note = optional_text(d.get("next_activity_note"))

        deal = self.build_deal(
            ctx,
            stage=stage,
            company_name=text(org.get("name")) or UNKNOWN_COMPANY,
            value_amount=parse_amount(d.get("value")),
            value_currency=text(d.get("currency")) or "USD",
            probability=parse_probability(d.get("probability")) or 0,
            deal_title=optional_text(d.get("title")),
            next_action=note,
            close_date=optional_text(d.get("expected_close_date")),
            primary_contact=contact_name,
            primary_email=email,
            created_at=created_at,
            updated_at=updated_at,
        )

        if not any(person.get(k) for k in _PERSON_KEYS):
            return deal, None

        contact = self.build_contact(
            ctx,
            deal.id,
            name=contact_name,
            email=email,
            phone=optional_text(contact_value(person.get("phone")) or contact_value(details.get("phone"))),
            role="Primary Contact",
            notes=note,
            created_at=created_at,
            updated_at=updated_at,
        )
        return deal, contact
