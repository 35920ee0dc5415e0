"""Abstract base class and shared field helpers for CRM record transformers."""

import logging
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from crm_deals.formatting import get_stage_display_name
from crm_deals.models.deal import Deal, DealContact, TransformResult
from crm_deals.models.raw import RawDeal
from crm_deals.models.settings import ImportSettings

logger = logging.getLogger(__name__)

DEFAULT_NEXT_STEPS = ["Schedule a meeting"]
UNKNOWN_COMPANY = "Unknown"
UNKNOWN_CONTACT = "Unknown Contact"
UNKNOWN_EMAIL = "unknown@example.com"

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def new_id() -> str:
    """Fresh random identifier for a deal or contact row."""
    return str(uuid.uuid4())


def now_iso() -> str:
    """Current UTC time as ISO-8601."""
    return datetime.now(timezone.utc).isoformat()


def as_dict(value: Any) -> dict:
    """Value if it is a dict, else an empty dict."""
    return value if isinstance(value, dict) else {}


def text(value: Any) -> str:
    """Stripped string for scalars; empty string for None, containers and booleans."""
    if value is None or isinstance(value, (bool, dict, list, tuple, set)):
        return ""
    return str(value).strip()


def optional_text(value: Any) -> Optional[str]:
    """Like text(), but None when empty."""
    return text(value) or None


def full_name(first: Any, last: Any) -> str:
    """'First Last' with missing parts dropped."""
    return f"{text(first)} {text(last)}".strip()


def parse_amount(value: Any) -> float:
    """
    Non-negative amount from a number or numeric string ("2500", "$2,500.50").
    Missing, malformed or negative values become 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0
    else:
        match = _NUMBER.search(str(value).replace(",", ""))
        if not match:
            return 0
        number = float(match.group())
    if number != number or number in (float("inf"), float("-inf")) or number < 0:
        return 0
    return number


def parse_probability(value: Any) -> Optional[float]:
    """Probability clamped to 0-100, or None when absent or not numeric."""
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if number != number:
        return None
    return min(max(number, 0.0), 100.0)


def contact_value(value: Any) -> str:
    """
    Email or phone from the shapes CRMs use: "a@b.com", {"value": "a@b.com"},
    or a list of either (first non-empty wins).
    """
    if isinstance(value, (list, tuple)):
        for item in value:
            found = contact_value(item)
            if found:
                return found
        return ""
    if isinstance(value, dict):
        return text(value.get("value") or value.get("email"))
    return text(value)


def as_str_list(value: Any) -> list[str]:
    """
    List of non-empty strings from a string, a list of strings, or a list of
    {"name": ...} objects.
    """
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    result: list[str] = []
    for item in items:
        s = text(item.get("name")) if isinstance(item, dict) else text(item)
        if s:
            result.append(s)
    return result


@dataclass
class TransformContext:
    """State scoped to a single transform call."""

    account_id: str
    created_by: str
    now: str = field(default_factory=now_iso)
    # external contact id -> generated DealContact id
    contact_ids: dict[str, str] = field(default_factory=dict)
    # secondary records (e.g. Zoho contacts) by external id
    lookup: dict[str, dict] = field(default_factory=dict)


class BaseTransformer(ABC):
    """
    Standard interface for CRM record transformers.
    Each raw record yields exactly one Deal and at most one DealContact.
    """

    platform: str = ""

    def __init__(self, settings: Optional[ImportSettings] = None):
        self.settings = settings or ImportSettings()

    def split_payload(self, records: list[Any]) -> tuple[list[Any], list[Any]]:
        """
        Separate deal records from secondary records used for enrichment.
        Default: everything is a deal record.
        """
        return records, []

    @abstractmethod
    def transform_record(
        self, raw: RawDeal, ctx: TransformContext
    ) -> tuple[Deal, Optional[DealContact]]:
        """Convert one raw record to a Deal and optional DealContact."""

    def transform(
        self,
        records: Iterable[Any],
        account_id: str,
        created_by: str,
    ) -> TransformResult:
        """Transform a batch of raw records into deals and their contacts."""
        deal_records, secondary = self.split_payload(list(records))
        ctx = TransformContext(account_id=account_id, created_by=created_by)
        for item in secondary:
            item_id = text(as_dict(item).get("id"))
            if item_id:
                ctx.lookup[item_id] = item

        logger.info("Transforming %d %s records", len(deal_records), self.platform)
        result = TransformResult()
        for record in deal_records:
            deal, contact = self.transform_record(RawDeal.wrap(record), ctx)
            result.deals.append(deal)
            if contact is not None:
                result.deal_contacts.append(contact)
            logger.debug("Transformed %s deal %r (stage: %s)", self.platform, deal.deal_title, deal.stage)

        logger.info(
            "%s transformation complete: %d deals, %d contacts",
            self.platform,
            len(result.deals),
            len(result.deal_contacts),
        )
        return result

    def build_deal(self, ctx: TransformContext, *, stage: str, **fields: Any) -> Deal:
        """Deal with identity, provenance, audit and neutral AI fields filled in."""
        fields["created_at"] = fields.get("created_at") or ctx.now
        fields["updated_at"] = fields.get("updated_at") or ctx.now
        if not fields.get("next_steps"):
            fields["next_steps"] = list(DEFAULT_NEXT_STEPS)
        return Deal(
            id=new_id(),
            account_id=ctx.account_id,
            source=self.platform,
            stage=stage,
            stage_name=get_stage_display_name(stage),
            momentum=0,
            momentum_trend="steady",
            created_by=ctx.created_by,
            updated_by=ctx.created_by,
            **fields,
        )

    def build_contact(
        self,
        ctx: TransformContext,
        deal_id: str,
        *,
        row_id: Optional[str] = None,
        **fields: Any,
    ) -> DealContact:
        """DealContact linked to deal_id, with placeholder name and email when missing."""
        fields["name"] = fields.get("name") or UNKNOWN_CONTACT
        fields["email"] = fields.get("email") or UNKNOWN_EMAIL
        fields.setdefault("is_primary", True)
        fields.setdefault("is_decision_maker", False)
        fields["created_at"] = fields.get("created_at") or ctx.now
        fields["updated_at"] = fields.get("updated_at") or ctx.now
        return DealContact(id=row_id or new_id(), deal_id=deal_id, **fields)
