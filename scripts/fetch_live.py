#!/usr/bin/env python3
"""Quick live check of a CRM fetch + transform.

Needs <PLATFORM>_ACCESS_TOKEN (and <PLATFORM>_API_DOMAIN for Salesforce) in the environment.

Run:
  python scripts/fetch_live.py pipedrive
  python scripts/fetch_live.py folk
"""

import sys

from crm_deals.fetchers import FetchError
from crm_deals.models.settings import ImportSettings
from crm_deals.pipeline import fetch_and_transform


def main() -> None:
    platform = sys.argv[1] if len(sys.argv) > 1 else "pipedrive"
    print(f"Fetching deals from {platform}...")
    try:
        result = fetch_and_transform(ImportSettings(platform=platform))
    except FetchError as e:
        raise SystemExit(f"Fetch failed: {e}")

    print(f"Got {len(result.deals)} deals, {len(result.deal_contacts)} contacts")
    for i, deal in enumerate(result.deals[:5], 1):
        print(f"  {i}. [{deal.stage}] {deal.deal_title or 'N/A'} ({deal.company_name}, {deal.value_amount:g} {deal.value_currency})")
    if result.deals:
        print("\n✅ Fetch + transform succeeded.")
    else:
        print("\n⚠️ No deals returned. Check logs for errors.")


if __name__ == "__main__":
    main()
