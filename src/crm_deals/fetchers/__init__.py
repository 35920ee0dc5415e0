"""HTTP fetchers that pull raw deal payloads from CRM APIs."""

from crm_deals.fetchers.base import BaseFetcher, FetchError
from crm_deals.fetchers.registry import FetcherRegistry

__all__ = ["BaseFetcher", "FetchError", "FetcherRegistry"]
