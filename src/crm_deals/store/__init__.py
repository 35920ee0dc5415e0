"""Local storage for transformed deals and import history."""

from crm_deals.store.sqlite_store import DealStore, ImportRun, StoreError, insert_transformed_data

__all__ = ["DealStore", "ImportRun", "StoreError", "insert_transformed_data"]
