"""Folk CRM people -> canonical deals.

Folk has no deal object: each person in a group is a deal, and the deal's
attributes live in ``customFieldValues[groupId]`` keyed by the tenant's own
field labels ("Status", "Deal value", ...). Labels are read by name and
missing ones are skipped; the label names come from ImportSettings.
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
    contact_value,
    full_name,
    optional_text,
    parse_amount,
    text,
)


def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _company_name(person: dict) -> str:
    company = _first(person.get("companies"))
    if isinstance(company, dict):
        return text(company.get("name"))
    return text(company)


def _group_fields(person: dict) -> tuple[dict, dict]:
    """(first group, its custom field values). A lone custom-field group is used when groups is empty."""
    group = as_dict(_first(person.get("groups")))
    values = as_dict(person.get("customFieldValues"))
    group_id = text(group.get("id"))
    if not group_id and len(values) == 1:
        group_id = next(iter(values))
    return group, as_dict(values.get(group_id))


class FolkTransformer(BaseTransformer):
    """Transformer for Folk /people records."""

    platform = "folk"

    def custom_field(self, fields: dict, name: str) -> str:
        """Value of a logical field (e.g. "status") via the configured label; "" when absent."""
        label = self.settings.folk_field_labels.get(name)
        if not label:
            return ""
        return text(_first(fields.get(label)))

    def transform_record(
        self, raw: RawDeal, ctx: TransformContext
    ) -> tuple[Deal, Optional[DealContact]]:
        person = raw.data
        group, fields = _group_fields(person)

        company = _company_name(person) or UNKNOWN_COMPANY
        name = text(person.get("fullName")) or full_name(person.get("firstName"), person.get("lastName"))
        email = contact_value(person.get("emails"))
        next_step = self.custom_field(fields, "next_steps")
        lost_reason = self.custom_field(fields, "lost_reason")

        title = name
        if name and company != UNKNOWN_COMPANY:
            title = f"{name} ({company})"

        deal = self.build_deal(
            ctx,
            stage=map_stage(self.platform, self.custom_field(fields, "status")),
            company_name=company,
            industry=self.custom_field(fields, "industry") or "Technology",
            value_amount=parse_amount(self.custom_field(fields, "deal_value")),
            company_size=self.custom_field(fields, "company_size") or None,
            website=optional_text(_first(person.get("urls"))),
            deal_title=title or None,
            next_action=next_step or None,
            next_steps=[next_step] if next_step else [],
            close_date=self.custom_field(fields, "closed_date") or None,
            pain_points=[lost_reason] if lost_reason else [],
            tags=[t for t in (self.custom_field(fields, "channel"), text(group.get("name"))) if t],
            primary_contact=name,
            primary_email=email,
        )

        return deal, self.build_contact(
            ctx,
            deal.id,
            name=name,
            email=email,
            phone=optional_text(contact_value(person.get("phones"))),
            role=optional_text(person.get("jobTitle")),
            notes=optional_text(person.get("description")),
        )
