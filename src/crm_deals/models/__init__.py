"""Data models for canonical deals, contacts and raw CRM records."""

from crm_deals.models.deal import (
    CANONICAL_STAGES,
    Deal,
    DealContact,
    DealStage,
    MomentumTrend,
    TransformResult,
)
from crm_deals.models.raw import RawDeal

__all__ = [
    "CANONICAL_STAGES",
    "Deal",
    "DealContact",
    "DealStage",
    "MomentumTrend",
    "RawDeal",
    "TransformResult",
]
