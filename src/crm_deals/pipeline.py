"""Import orchestration: fetch from a CRM, transform, then persist."""

import logging
from pathlib import Path
from typing import Optional

import httpx

from crm_deals.fetchers import FetcherRegistry
from crm_deals.models.deal import TransformResult
from crm_deals.models.settings import ImportSettings
from crm_deals.store import DealStore, insert_transformed_data
from crm_deals.transform import transform_deals

logger = logging.getLogger(__name__)


def _platform(settings: ImportSettings, platform: Optional[str]) -> str:
    name = platform or settings.platform
    if not name:
        raise ValueError("No platform given. Set platform in settings or pass one explicitly.")
    return name.lower().strip()


def fetch_and_transform(
    settings: ImportSettings,
    *,
    platform: Optional[str] = None,
    client: Optional[httpx.Client] = None,
) -> TransformResult:
    """Fetch the platform's raw payload and transform it. Nothing is persisted."""
    name = _platform(settings, platform)
    fetcher = FetcherRegistry.get(name, settings, client=client)
    raw = fetcher.fetch_raw()
    return transform_deals(
        raw,
        name,
        settings.account_id,
        settings.created_by,
        settings=settings,
    )


def run_import(
    settings: ImportSettings,
    *,
    db_path: Path,
    platform: Optional[str] = None,
    client: Optional[httpx.Client] = None,
) -> TransformResult:
    """
    Full import: fetch → transform → insert, recorded as an import run.
    The run is marked failed (and the error re-raised) if any step fails.
    """
    name = _platform(settings, platform)
    store = DealStore(db_path)
    run = store.start_run(name, settings.account_id)
    try:
        result = fetch_and_transform(settings, platform=name, client=client)
        deals_inserted, contacts_inserted = insert_transformed_data(result, store)
    except Exception:
        store.finish_run(run.id, 0, 0, status="failed")
        raise
    store.finish_run(run.id, deals_inserted, contacts_inserted)
    logger.info(
        "Import from %s complete: %d deals, %d contacts",
        name,
        deals_inserted,
        contacts_inserted,
    )
    return result
