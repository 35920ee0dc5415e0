"""Display helpers: currency values, stage labels and the DB-row -> board-card shape."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Optional

from crm_deals.stages import DEFAULT_STAGE, is_canonical_stage

STAGE_DISPLAY_NAMES: dict[str, str] = {
    "interested": "Interested",
    "contacted": "Contacted",
    "demo": "Demo",
    "proposal": "Proposal",
    "negotiation": "Negotiation",
    "won": "Won",
    "lost": "Lost",
}

# en-US currency symbols; other ISO codes are rendered as "<CODE> 1,234"
_CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
    "CAD": "CA$",
    "AUD": "A$",
    "NZD": "NZ$",
    "MXN": "MX$",
    "BRL": "R$",
    "CNY": "CN¥",
    "HKD": "HK$",
    "KRW": "₩",
    "ILS": "₪",
    "VND": "₫",
}


def _to_decimal(amount: Any) -> Decimal:
    if not amount or isinstance(amount, bool):
        return Decimal(0)
    try:
        return Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return Decimal(0)


def format_value(amount: Any = 0, currency: Optional[str] = "USD") -> str:
    """
    Format an amount as en-US currency with no decimals, e.g. 1500, "USD" -> "$1,500".
    Falsy amount formats as 0; falsy currency as USD.
    """
    code = (currency or "USD").strip().upper() or "USD"
    value = _to_decimal(amount)
    if not value.is_finite():
        value = Decimal(0)
    with localcontext() as ctx:
        # quantize needs one digit of precision per integer digit
        ctx.prec = max(ctx.prec, value.adjusted() + 2)
        rounded = value.quantize(Decimal(1), rounding=ROUND_HALF_UP)
        digits = f"{abs(rounded):,.0f}"
    sign = "-" if rounded < 0 else ""
    symbol = _CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{sign}{symbol}{digits}"
    return f"{sign}{code} {digits}"


def get_stage_display_name(stage: Any) -> str:
    """Human label for a canonical stage; "Interested" for anything else."""
    return STAGE_DISPLAY_NAMES.get(stage, "Interested") if isinstance(stage, str) else "Interested"


def _primary_contact(deal_contacts: Any) -> dict:
    if isinstance(deal_contacts, list):
        contacts = [c for c in deal_contacts if isinstance(c, dict)]
        if not contacts:
            return {}
        return next((c for c in contacts if c.get("is_primary")), contacts[0])
    if isinstance(deal_contacts, dict):
        return deal_contacts
    return {}


def to_display_deal(deal: dict[str, Any]) -> dict[str, Any]:
    """
    Convert a stored deal row (optionally with nested deal_contacts) to the
    camelCase card shape the dashboard renders.
    """
    stage = deal.get("stage") if is_canonical_stage(deal.get("stage")) else DEFAULT_STAGE
    contact = _primary_contact(deal.get("deal_contacts"))
    currency = deal.get("value_currency") or "USD"

    return {
        "id": deal.get("id"),
        "companyName": deal.get("company_name"),
        "industry": deal.get("industry") or "",
        "valueAmount": deal.get("value_amount") or 0,
        "valueCurrency": currency,
        "value": format_value(deal.get("value_amount"), currency),
        "contact": contact.get("name") or "",
        "email": contact.get("email") or "",
        "stage": stage,
        "stageName": get_stage_display_name(stage),
        "createdAt": deal.get("created_at"),
        "updatedAt": deal.get("updated_at"),
        "closeDate": deal.get("close_date"),
        "probability": deal.get("probability") or 0,
        "painPoints": deal.get("pain_points") or [],
        "nextSteps": deal.get("next_steps") or [],
        "companySize": deal.get("company_size"),
        "website": deal.get("website"),
        "dealTitle": deal.get("deal_title"),
        "nextAction": deal.get("next_action"),
        "relationshipInsights": deal.get("relationship_insights"),
        "lastMeetingSummary": deal.get("last_meeting_summary"),
        "momentum": deal.get("momentum") or 0,
        "momentumTrend": deal.get("momentum_trend") or "steady",
        "lastMomentumChange": deal.get("last_momentum_change"),
        "blockers": deal.get("blockers") or [],
        "opportunities": deal.get("opportunities") or [],
        "tags": deal.get("tags") or [],
        "source": deal.get("source"),
        "createdBy": deal.get("created_by"),
        "updatedBy": deal.get("updated_by"),
    }
