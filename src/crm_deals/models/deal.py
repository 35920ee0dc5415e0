"""Canonical deal and deal-contact models shared by all CRM transformers."""

from typing import Literal, Optional, get_args

from pydantic import BaseModel, Field

DealStage = Literal["interested", "contacted", "demo", "proposal", "negotiation", "won", "lost"]
MomentumTrend = Literal["accelerating", "steady", "decelerating", "stalled"]

# Pipeline order; matches the CHECK constraint on deals.stage
CANONICAL_STAGES: tuple[str, ...] = get_args(DealStage)


class Deal(BaseModel):
    """One sales opportunity in the canonical schema."""

    id: str = Field(..., description="Generated UUID")
    account_id: str = Field(..., description="Owning tenant account")

    company_name: str = "Unknown"
    industry: str = "Technology"
    company_size: Optional[str] = None
    website: Optional[str] = None
    deal_title: Optional[str] = None

    value_amount: float = Field(default=0, ge=0)
    value_currency: str = "USD"
    stage: DealStage = "interested"
    probability: Optional[float] = Field(default=None, ge=0, le=100)
    close_date: Optional[str] = None

    source: str = Field(..., description="Source platform, e.g. 'pipedrive'")

    primary_contact: str = ""
    primary_email: str = ""

    next_action: Optional[str] = None
    relationship_insights: Optional[str] = None
    last_meeting_summary: Optional[str] = None

    pain_points: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)
    blockers: list[str] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    momentum: float = 0
    momentum_trend: MomentumTrend = "steady"
    last_momentum_change: Optional[str] = None

    created_at: str
    updated_at: str
    created_by: str
    updated_by: str

    # Display label for the board; never persisted
    stage_name: Optional[str] = None

    def to_row(self) -> dict:
        """Row for the deals table (UI-only fields stripped)."""
        return self.model_dump(exclude={"stage_name"})


class DealContact(BaseModel):
    """A person associated with one Deal."""

    id: str
    deal_id: str
    name: str = Field(default="Unknown Contact", min_length=1)
    email: str = "unknown@example.com"
    phone: Optional[str] = None
    role: Optional[str] = None
    contact_role_type: Optional[str] = None
    is_primary: bool = False
    is_decision_maker: bool = False
    last_contacted: Optional[str] = None
    notes: Optional[str] = None
    contact_id: Optional[str] = None
    created_at: str
    updated_at: str

    def to_row(self) -> dict:
        """Row for the deal_contacts table."""
        return self.model_dump()


class TransformResult(BaseModel):
    """Output of one transform call: deals plus the contacts that reference them."""

    deals: list[Deal] = Field(default_factory=list)
    deal_contacts: list[DealContact] = Field(default_factory=list)

    def dangling_contacts(self) -> list[DealContact]:
        """Contacts whose deal_id does not reference a deal in this result."""
        deal_ids = {d.id for d in self.deals}
        return [c for c in self.deal_contacts if c.deal_id not in deal_ids]

    def to_json_dict(self) -> dict:
        """Serialize using the camelCase key the import API returned."""
        return {
            "deals": [d.model_dump(mode="json") for d in self.deals],
            "dealContacts": [c.model_dump(mode="json") for c in self.deal_contacts],
        }
