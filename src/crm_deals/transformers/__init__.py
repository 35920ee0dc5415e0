"""Per-platform transformers from raw CRM payloads to canonical deals."""

from crm_deals.transformers.base import BaseTransformer, TransformContext
from crm_deals.transformers.registry import TransformerRegistry, UnsupportedPlatformError

__all__ = ["BaseTransformer", "TransformContext", "TransformerRegistry", "UnsupportedPlatformError"]
