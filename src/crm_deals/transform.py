"""Single entry point for turning a CRM payload into deals and deal contacts."""

import logging
from typing import Any, Optional

from crm_deals.models.deal import TransformResult
from crm_deals.models.raw import RawDeal
from crm_deals.models.settings import ImportSettings
from crm_deals.transformers.registry import TransformerRegistry, UnsupportedPlatformError

logger = logging.getLogger(__name__)

__all__ = ["InvalidPayloadError", "UnsupportedPlatformError", "transform_deals"]


class InvalidPayloadError(ValueError):
    """Raised when the top-level payload is neither a list of records nor a single record."""


def _as_records(raw_data: Any) -> list[Any]:
    if isinstance(raw_data, (list, tuple)):
        return list(raw_data)
    if isinstance(raw_data, (dict, RawDeal)):
        return [raw_data]
    raise InvalidPayloadError(
        f"Expected a list of records or a single record, got {type(raw_data).__name__}"
    )


def transform_deals(
    raw_data: Any,
    platform: str,
    account_id: str = "account123",
    created_by: str = "user456",
    *,
    settings: Optional[ImportSettings] = None,
) -> TransformResult:
    """
    Route a raw payload to the platform's transformer.
    A single record is treated as a one-element list. Raises
    UnsupportedPlatformError or InvalidPayloadError before any record is processed.
    """
    logger.info("Starting transformation for platform: %s", platform)
    try:
        transformer = TransformerRegistry.get(platform, settings)
    except UnsupportedPlatformError:
        logger.error("Unsupported platform: %s", platform)
        raise
    records = _as_records(raw_data)
    return transformer.transform(records, account_id, created_by)
