"""Unit tests for CRM fetchers (HTTP mocked with httpx.MockTransport)."""

import json
from typing import Callable

import httpx
import pytest

from crm_deals.fetchers import FetchError
from crm_deals.fetchers.folk import FolkFetcher
from crm_deals.fetchers.hubspot import HubSpotFetcher
from crm_deals.fetchers.pipedrive import PipedriveFetcher
from crm_deals.fetchers.salesforce import SalesforceFetcher, _soql_quote
from crm_deals.fetchers.zoho import ZohoFetcher
from crm_deals.models.settings import ImportSettings
from crm_deals.transform import transform_deals


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestBaseFetcher:
    """Tests for shared fetcher behaviour."""

    def test_unauthorized_raises_reconnect_message(self) -> None:
        """401 on the deal listing asks the user to reconnect."""
        client = _client(lambda request: httpx.Response(401, json={"error": "unauthorized"}))
        fetcher = PipedriveFetcher("bad", client=client)
        with pytest.raises(FetchError, match="Pipedrive authentication failed"):
            fetcher.fetch_raw()

    def test_server_error_raises(self) -> None:
        """Other HTTP errors on the deal listing raise FetchError with the status."""
        client = _client(lambda request: httpx.Response(503))
        with pytest.raises(FetchError, match="HTTP 503"):
            HubSpotFetcher("tok", client=client).fetch_raw()

    def test_network_error_raises(self) -> None:
        """Transport failures on the deal listing raise FetchError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("boom", request=request)

        with pytest.raises(FetchError, match="Failed to fetch deals from Zoho"):
            ZohoFetcher("tok", client=_client(handler)).fetch_raw()

    def test_from_settings_requires_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """No token in settings or environment raises FetchError."""
        monkeypatch.delenv("HUBSPOT_ACCESS_TOKEN", raising=False)
        with pytest.raises(FetchError, match="No access token for HubSpot"):
            HubSpotFetcher.from_settings(ImportSettings())

    def test_from_settings_env_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Token is read from the environment."""
        monkeypatch.setenv("ZOHO_ACCESS_TOKEN", "env-tok")
        monkeypatch.delenv("ZOHO_API_DOMAIN", raising=False)
        fetcher = ZohoFetcher.from_settings(ImportSettings())
        assert fetcher.access_token == "env-tok"
        assert fetcher.api_domain == "https://www.zohoapis.com"


class TestPipedriveFetcher:
    """Tests for PipedriveFetcher."""

    def test_merges_person_details(self) -> None:
        """Person records are merged into person_id."""
        seen_auth: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen_auth.append(request.headers.get("Authorization", ""))
            if request.url.path == "/v1/deals":
                assert request.url.params.get("limit") == "500"
                return httpx.Response(
                    200,
                    json={"data": [{"id": 1, "title": "D", "stage_id": 2, "person_id": {"value": 55, "name": "Jane"}}]},
                )
            if request.url.path == "/v1/persons/55":
                return httpx.Response(
                    200,
                    json={"data": {"id": 55, "name": "Jane Doe", "email": [{"value": "jane@acme.com"}], "phone": []}},
                )
            return httpx.Response(404)

        deals = PipedriveFetcher("tok", client=_client(handler)).fetch_raw()
        assert seen_auth and all(a == "Bearer tok" for a in seen_auth)
        person = deals[0]["person_id"]
        assert person["value"] == 55
        assert person["name"] == "Jane Doe"
        assert person["details"]["id"] == 55

        result = transform_deals(deals, "pipedrive", "acct", "user")
        assert result.deals[0].primary_email == "jane@acme.com"

    def test_failed_person_lookup_is_skipped(self) -> None:
        """A failing person lookup leaves the deal as listed."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/v1/deals":
                return httpx.Response(200, json={"data": [{"id": 1, "person_id": {"value": 7, "name": "Sam"}}]})
            return httpx.Response(500)

        deals = PipedriveFetcher("tok", client=_client(handler)).fetch_raw()
        assert deals == [{"id": 1, "person_id": {"value": 7, "name": "Sam"}}]

    def test_empty_listing(self) -> None:
        """A null data listing yields no deals."""
        client = _client(lambda request: httpx.Response(200, json={"data": None}))
        assert PipedriveFetcher("tok", client=client).fetch_raw() == []


class TestHubSpotFetcher:
    """Tests for HubSpotFetcher."""

    def test_merges_batch_contacts(self) -> None:
        """Deal properties and the first associated contact are merged."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET" and request.url.path == "/crm/v3/objects/deals":
                return httpx.Response(
                    200,
                    json={
                        "results": [
                            {
                                "id": "9001",
                                "createdAt": "2026-02-01T00:00:00Z",
                                "updatedAt": "2026-02-02T00:00:00Z",
                                "properties": {"dealname": "Initech", "amount": "7500", "dealstage": "closedwon"},
                                "associations": {"contacts": {"results": [{"id": "c-1", "type": "deal_to_contact"}]}},
                            }
                        ]
                    },
                )
            if request.method == "POST" and request.url.path == "/crm/v3/objects/contacts/batch/read":
                body = json.loads(request.content)
                assert body["inputs"] == [{"id": "c-1"}]
                return httpx.Response(
                    200,
                    json={"results": [{"id": "c-1", "properties": {"firstname": "Bill", "email": "bill@initech.com"}}]},
                )
            return httpx.Response(404)

        deals = HubSpotFetcher("tok", client=_client(handler)).fetch_raw()
        assert deals[0]["name"] == "Initech"
        assert deals[0]["stage"] == "closedwon"
        assert deals[0]["contacts"]["id"] == "c-1"
        assert deals[0]["contacts"]["email"] == "bill@initech.com"

        result = transform_deals(deals, "hubspot", "acct", "user")
        assert result.deals[0].stage == "won"
        assert result.deals[0].value_amount == 7500
        assert len(result.deal_contacts) == 1

    def test_contact_batch_failure_keeps_deals(self) -> None:
        """Deals are still returned when the contact batch fails."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(
                    200,
                    json={"results": [{"id": "1", "properties": {}, "associations": {"contacts": {"results": [{"id": "c"}]}}}]},
                )
            return httpx.Response(500)

        deals = HubSpotFetcher("tok", client=_client(handler)).fetch_raw()
        assert len(deals) == 1
        assert deals[0]["contacts"] is None


class TestSalesforceFetcher:
    """Tests for SalesforceFetcher."""

    def test_requires_instance_url(self) -> None:
        """Salesforce has no default API domain."""
        with pytest.raises(FetchError, match="needs an API domain"):
            SalesforceFetcher("tok")

    def test_joins_contacts_through_roles(self) -> None:
        """Opportunities are joined to contacts via contact roles."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/services/data/v59.0/query"
            query = request.url.params.get("q", "")
            if query.startswith("SELECT Id, Name, Amount"):
                return httpx.Response(
                    200,
                    json={"records": [{"Id": "006A", "Name": "Globex", "Amount": 100, "StageName": "Closed Won"}]},
                )
            if "OpportunityContactRole" in query:
                return httpx.Response(200, json={"records": [{"OpportunityId": "006A", "ContactId": "003B"}]})
            if "FROM Contact" in query:
                assert "'003B'" in query
                return httpx.Response(
                    200,
                    json={
                        "records": [
                            {"Id": "003B", "FirstName": "Hank", "LastName": "S", "Email": "h@g.com", "Account": {"Name": "Globex Corp"}}
                        ]
                    },
                )
            return httpx.Response(400)

        fetcher = SalesforceFetcher("tok", "https://acme.my.salesforce.com/", client=_client(handler))
        deals = fetcher.fetch_raw()
        assert deals[0]["stage"] == "Closed Won"
        assert deals[0]["contacts"]["company"] == "Globex Corp"

        result = transform_deals(deals, "salesforce", "acct", "user")
        assert result.deals[0].stage == "won"
        assert result.deals[0].company_name == "Globex Corp"
        assert result.deal_contacts[0].name == "Hank S"

    def test_soql_quote_escapes(self) -> None:
        """Quotes in ids are escaped."""
        assert _soql_quote("a'b") == "'a\\'b'"


class TestZohoFetcher:
    """Tests for ZohoFetcher."""

    def test_dual_payload_and_auth(self) -> None:
        """Deals and contacts are returned side by side with Zoho auth."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Zoho-oauthtoken tok"
            if request.url.path == "/crm/v2/Deals":
                return httpx.Response(200, json={"data": [{"id": "d1", "Contact_Name": {"id": "c1", "name": "A"}}]})
            if request.url.path == "/crm/v2/Contacts":
                return httpx.Response(200, json={"data": [{"id": "c1", "Email": "a@x.com"}]})
            return httpx.Response(404)

        payload = ZohoFetcher("tok", client=_client(handler)).fetch_raw()
        assert payload == [
            {"data": [{"id": "d1", "Contact_Name": {"id": "c1", "name": "A"}}]},
            {"data": [{"id": "c1", "Email": "a@x.com"}]},
        ]
        result = transform_deals(payload, "zoho", "acct", "user")
        assert result.deals[0].primary_email == "a@x.com"

    def test_no_content_contacts(self) -> None:
        """Zoho answers 204 with no body when a module is empty."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/crm/v2/Deals":
                return httpx.Response(200, json={"data": [{"id": "d1"}]})
            return httpx.Response(204)

        payload = ZohoFetcher("tok", client=_client(handler)).fetch_raw()
        assert payload[1] == {"data": []}


class TestFolkFetcher:
    """Tests for FolkFetcher."""

    def test_reads_people_items(self) -> None:
        """People are read from data.items."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/people"
            return httpx.Response(200, json={"data": {"items": [{"fullName": "Bob"}]}})

        people = FolkFetcher("tok", client=_client(handler)).fetch_raw()
        assert people == [{"fullName": "Bob"}]

    def test_api_version_from_settings(self) -> None:
        """api_version in settings selects the path prefix."""
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json={"data": {"items": []}})

        settings = ImportSettings(access_token="tok", api_version="v2")
        assert FolkFetcher.from_settings(settings, client=_client(handler)).fetch_raw() == []
        assert paths == ["/v2/people"]
