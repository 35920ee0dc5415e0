"""Import settings loaded from YAML, with environment fallbacks."""

import os
from pathlib import Path
from typing import Optional

try:
    import yaml
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "PyYAML is required for settings loading. Run: pip install -e ."
    ) from e
from pydantic import BaseModel, Field, field_validator

DEFAULT_FOLK_FIELD_LABELS: dict[str, str] = {
    "status": "Status",
    "deal_value": "Deal value",
    "industry": "Company vertical",
    "company_size": "Company size",
    "next_steps": "Next steps",
    "closed_date": "Closed date",
    "lost_reason": "Lost reason",
    "channel": "Channel",
}


class ImportSettings(BaseModel):
    """Who an import runs for, which CRM it reads and how to reach it."""

    account_id: str = "account123"
    created_by: str = "user456"
    platform: Optional[str] = None

    access_token: Optional[str] = None
    api_domain: Optional[str] = None
    api_version: Optional[str] = None

    folk_field_labels: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_FOLK_FIELD_LABELS),
        description="Logical field -> tenant's Folk custom field label",
    )

    @field_validator("folk_field_labels")
    @classmethod
    def _merge_default_labels(cls, v: dict[str, str]) -> dict[str, str]:
        """Labels not given keep their defaults."""
        return {**DEFAULT_FOLK_FIELD_LABELS, **v}

    def token_for(self, platform: str) -> Optional[str]:
        """Explicit token, else <PLATFORM>_ACCESS_TOKEN from the environment."""
        return self.access_token or os.environ.get(f"{platform.upper()}_ACCESS_TOKEN")

    def api_domain_for(self, platform: str) -> Optional[str]:
        """Explicit API domain, else <PLATFORM>_API_DOMAIN from the environment."""
        return self.api_domain or os.environ.get(f"{platform.upper()}_API_DOMAIN")

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ImportSettings":
        """Load settings from YAML. Supports nested (account/crm) or flat structure."""
        data = yaml.safe_load(Path(path).read_text()) or {}
        account = data.get("account", {})
        crm = data.get("crm", {})

        def _get(key: str, nested: dict, top: dict, default=None):
            return nested.get(key, top.get(key, default))

        flat: dict = {}
        for key in ("account_id", "created_by"):
            value = _get(key, account, data)
            if value is not None:
                flat[key] = str(value)
        for key in ("platform", "access_token", "api_domain", "api_version"):
            value = _get(key, crm, data)
            if value is not None:
                flat[key] = str(value)

        labels = _get("folk_field_labels", crm, data)
        if labels:
            flat["folk_field_labels"] = labels
        return cls.model_validate(flat)
