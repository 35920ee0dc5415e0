"""Stage mapping: platform pipeline vocabulary -> canonical deal stage.

Two tiers:
1. Exact lookup in a per-platform table. Pipedrive is keyed by numeric
   stage_id; Zoho and Folk are matched on the normalized (trimmed,
   lowercased) token; Salesforce and HubSpot match the literal token.
2. Ordered keyword rules, first match wins. Enabled for Zoho and Folk,
   whose pipelines are commonly customized per tenant.

Anything unmatched resolves to "interested".
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from crm_deals.models.deal import CANONICAL_STAGES

logger = logging.getLogger(__name__)

DEFAULT_STAGE = "interested"

PIPEDRIVE_STAGES: dict[int, str] = {
    1: "contacted",  # Qualified
    2: "interested",  # Contact Made
    3: "demo",  # Demo Scheduled
    4: "proposal",  # Proposal Made
    5: "negotiation",  # Negotiations Started
}

SALESFORCE_STAGES: dict[str, str] = {
    "Prospecting": "interested",
    "Qualification": "contacted",
    "Needs Analysis": "contacted",
    "Value Proposition": "demo",
    "Id. Decision Makers": "proposal",
    "Perception Analysis": "proposal",
    "Proposal/Price Quote": "proposal",
    "Negotiation/Review": "negotiation",
    "Closed Won": "won",
    "Closed Lost": "lost",
}

HUBSPOT_STAGES: dict[str, str] = {
    "appointmentscheduled": "interested",
    "qualifiedtobuy": "contacted",
    "presentationscheduled": "demo",
    "decisionmakerbroughtin": "proposal",
    "contractsent": "negotiation",
    "closedwon": "won",
    "closedlost": "lost",
}

# Keys are normalized tokens (see normalize_token)
ZOHO_STAGES: dict[str, str] = {
    "qualification": "contacted",
    "needs analysis": "contacted",
    "value proposition": "demo",
    "identify decision makers": "proposal",
    "proposal/price quote": "proposal",
    "negotiation/review": "negotiation",
    "closed won": "won",
    "closed lost": "lost",
}

FOLK_STAGES: dict[str, str] = {
    "lead": "interested",
    "qualified": "contacted",
    "follow-up": "contacted",
    "demo": "demo",
    "proposal": "proposal",
    "negotiation": "negotiation",
    "closed-won": "won",
    "closed-lost": "lost",
}

STAGE_TABLES: dict[str, dict[Any, str]] = {
    "pipedrive": PIPEDRIVE_STAGES,
    "salesforce": SALESFORCE_STAGES,
    "hubspot": HUBSPOT_STAGES,
    "zoho": ZOHO_STAGES,
    "folk": FOLK_STAGES,
}

CASE_INSENSITIVE_PLATFORMS = frozenset({"zoho", "folk"})
FALLBACK_PLATFORMS = frozenset({"zoho", "folk"})

# Checked in order; "won" precedes "lost" so "Closed Won (was Lost)" -> won
KEYWORD_RULES: list[tuple[tuple[str, ...], str]] = [
    (("qualification", "qualified"), "contacted"),
    (("demo", "presentation"), "demo"),
    (("proposal", "quote"), "proposal"),
    (("negotiation", "review"), "negotiation"),
    (("won",), "won"),
    (("lost",), "lost"),
    (("follow", "follow-up"), "contacted"),
    (("lead",), "interested"),
]


@dataclass(frozen=True)
class StageConfig:
    """Board metadata for a canonical stage."""

    label: str
    probability: int


STAGE_CONFIG: dict[str, StageConfig] = {
    "interested": StageConfig("Interested", 15),
    "contacted": StageConfig("Contacted", 35),
    "demo": StageConfig("Demo", 55),
    "proposal": StageConfig("Proposal", 75),
    "negotiation": StageConfig("Negotiation", 85),
    "won": StageConfig("Closed Won", 100),
    "lost": StageConfig("Closed Lost", 0),
}


def normalize_token(token: Any) -> str:
    """Trim and lowercase a stage token; empty string if None."""
    if token is None:
        return ""
    return str(token).strip().lower()


def is_canonical_stage(value: Any) -> bool:
    """True if value is one of the seven canonical stages."""
    return value in CANONICAL_STAGES


def match_keyword_rule(token: Any) -> Optional[str]:
    """First keyword rule whose keywords appear in the token, or None."""
    lowered = normalize_token(token)
    if not lowered:
        return None
    return next(
        (stage for keywords, stage in KEYWORD_RULES if any(k in lowered for k in keywords)),
        None,
    )


def _pipedrive_key(token: Any) -> Optional[int]:
    if isinstance(token, bool):
        return None
    if isinstance(token, int):
        return token
    if isinstance(token, float) and token.is_integer():
        return int(token)
    if isinstance(token, str) and token.strip().isdigit():
        return int(token.strip())
    return None


def lookup_stage(platform: str, token: Any) -> Optional[str]:
    """Exact-table lookup only. Returns None when the platform or token is unknown."""
    platform = platform.lower()
    table = STAGE_TABLES.get(platform)
    if not table or token is None:
        return None
    if platform == "pipedrive":
        key = _pipedrive_key(token)
        return table.get(key) if key is not None else None
    if platform in CASE_INSENSITIVE_PLATFORMS:
        return table.get(normalize_token(token))
    return table.get(str(token))


def map_stage(platform: str, token: Any, *, use_fallback: Optional[bool] = None) -> str:
    """
    Map a platform stage token to a canonical stage. Never raises.
    use_fallback: force keyword rules on/off; default is on for Zoho and Folk.
    """
    platform = (platform or "").lower()
    stage = lookup_stage(platform, token)
    how = "table"
    if stage is None:
        fallback = platform in FALLBACK_PLATFORMS if use_fallback is None else use_fallback
        stage = match_keyword_rule(token) if fallback else None
        how = "keyword" if stage else "default"
    if stage is None:
        stage = DEFAULT_STAGE
    logger.debug("Stage %s %r -> %s (%s)", platform, token, stage, how)
    return stage


def default_probability(stage: str) -> int:
    """Board win probability for a canonical stage (interested's for unknown)."""
    return STAGE_CONFIG.get(stage, STAGE_CONFIG[DEFAULT_STAGE]).probability
