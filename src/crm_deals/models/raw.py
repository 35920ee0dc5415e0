"""Raw CRM record representation before normalization."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RawDeal(BaseModel):
    """
    Flexible raw record from a CRM payload.
    Transformers read from ``data``; the shape differs per platform.
    """

    model_config = ConfigDict(extra="allow")

    data: dict[Any, Any] = Field(default_factory=dict)

    @classmethod
    def wrap(cls, record: Any) -> "RawDeal":
        """Wrap one payload item; anything that is not a mapping becomes an empty record."""
        if isinstance(record, RawDeal):
            return record
        if isinstance(record, dict):
            return cls(data=record)
        return cls()
