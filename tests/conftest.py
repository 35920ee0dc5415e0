"""Pytest fixtures for crm-deals tests."""

import tempfile
from pathlib import Path

import pytest


@pytest.fixture
def pipedrive_deal() -> dict:
    """Pipedrive /v1/deals record with a linked person."""
    return {
        "id": 101,
        "title": "Acme Deal",
        "value": 5000,
        "currency": "EUR",
        "stage_id": 3,
        "probability": 40,
        "expected_close_date": "2026-03-31",
        "org_id": {"name": "Acme Co", "value": 7},
        "person_id": {
            "value": 55,
            "name": "Jane Doe",
            "email": [{"value": "jane@acme.com", "primary": True}],
            "phone": [{"value": "+1 555 0100"}],
        },
        "add_time": "2026-01-05 10:00:00",
        "update_time": "2026-01-06 12:30:00",
        "next_activity_note": "Send deck",
    }


@pytest.fixture
def salesforce_deal() -> dict:
    """Merged Salesforce opportunity with its contact-role contact."""
    return {
        "id": "006A",
        "name": "Globex Renewal",
        "value": 12000,
        "stage": "Negotiation/Review",
        "probability": 80,
        "closeDate": "2026-04-15",
        "createdAt": "2026-01-01T09:00:00Z",
        "updatedAt": "2026-01-10T09:00:00Z",
        "contacts": {
            "id": "003B",
            "company": "Globex",
            "first_name": "Hank",
            "last_name": "Scorpio",
            "email": "hank@globex.com",
            "phone": "+1 555 0199",
        },
    }


@pytest.fixture
def hubspot_deal() -> dict:
    """Merged HubSpot deal with an associated contact."""
    return {
        "id": "9001",
        "name": "Initech Expansion",
        "value": "7500",
        "currency": "USD",
        "stage": "presentationscheduled",
        "closeDate": "2026-05-01",
        "created_at": "2026-02-01T00:00:00Z",
        "updated_at": "2026-02-02T00:00:00Z",
        "contacts": {
            "id": "c-1",
            "first_name": "Bill",
            "last_name": "Lumbergh",
            "email": "bill@initech.com",
            "company": "Initech",
        },
    }


@pytest.fixture
def zoho_payload() -> list[dict]:
    """Zoho dual payload: Deals listing, then Contacts listing."""
    return [
        {
            "data": [
                {
                    "id": "z-deal-1",
                    "Deal_Name": "Umbrella Pilot",
                    "Account_Name": {"name": "Umbrella Corp", "id": "acc-1"},
                    "Amount": 3200,
                    "Stage": "Value Proposition",
                    "Probability": 50,
                    "Closing_Date": "2026-06-30",
                    "Contact_Name": {"name": "Alice Wesker", "id": "zc-1"},
                    "Tag": [{"name": "pilot"}],
                    "Created_Time": "2026-01-02T10:00:00+00:00",
                    "Modified_Time": "2026-01-03T10:00:00+00:00",
                }
            ]
        },
        {
            "data": [
                {
                    "id": "zc-1",
                    "Full_Name": "Alice Wesker",
                    "Email": "alice@umbrella.com",
                    "Phone": "+1 555 0111",
                    "Description": "Met at conference",
                }
            ]
        },
    ]


@pytest.fixture
def folk_person() -> dict:
    """Folk person with group custom field values."""
    return {
        "id": "per_1",
        "fullName": "Bob Smith",
        "emails": ["bob@x.com"],
        "phones": ["+33 1 23 45 67 89"],
        "jobTitle": "CTO",
        "companies": ["X Corp"],
        "groups": [{"id": "g1", "name": "Leads"}],
        "customFieldValues": {
            "g1": {
                "Status": "Qualified",
                "Deal value": "2500",
                "Company vertical": "Fintech",
                "Next steps": "Book demo",
                "Channel": "Referral",
            }
        },
    }


@pytest.fixture
def temp_db() -> Path:
    """Temporary database path for isolated tests."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = Path(f.name)
    yield path
    path.unlink(missing_ok=True)
