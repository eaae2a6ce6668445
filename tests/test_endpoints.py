"""Tests for Marketing API query building and listing/insights fetches."""

import json

import pytest

from backoffice.connectors.meta.endpoints import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    MarketingEndpoints,
    encode_status_filter,
    normalize_account_id,
    parse_limit,
)

from tests.fakes import FakeGraphClient


class TestParameterHelpers:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (None, DEFAULT_LIMIT),
            ("10", 10),
            ("100", 100),
            ("500", MAX_LIMIT),
            ("-3", DEFAULT_LIMIT),
            ("0", DEFAULT_LIMIT),
            ("abc", DEFAULT_LIMIT),
            ("", DEFAULT_LIMIT),
            ("40abc", 40),
            (7, 7),
        ],
    )
    def test_parse_limit(self, raw, expected):
        assert parse_limit(raw) == expected

    def test_normalize_account_id(self):
        assert normalize_account_id("123") == "act_123"
        assert normalize_account_id("act_123") == "act_123"

    def test_status_filter_is_json_array(self):
        assert encode_status_filter("ACTIVE, PAUSED") == '["ACTIVE", "PAUSED"]'
        assert encode_status_filter(None) is None
        assert encode_status_filter(" , ") is None


@pytest.fixture
def fake():
    return FakeGraphClient()


@pytest.fixture
def endpoints(fake):
    return MarketingEndpoints(fake, "tok")


@pytest.mark.asyncio
async def test_list_campaigns_builds_query(fake, endpoints):
    fake.queue(
        {
            "data": [{"id": "120", "name": "Launch", "status": "ACTIVE"}],
            "paging": {"cursors": {"after": "A", "before": "B"}, "next": "https://n"},
        }
    )

    page = await endpoints.list_campaigns(
        "42", limit="500", after="A0", effective_status="ACTIVE,PAUSED"
    )

    call = fake.calls[0]
    assert call.method == "GET"
    assert call.path == "act_42/campaigns"
    assert call.access_token == "tok"
    assert call.params["limit"] == 100
    assert call.params["after"] == "A0"
    assert "before" not in call.params
    assert json.loads(call.params["effective_status"]) == ["ACTIVE", "PAUSED"]
    assert "insights{" in call.params["fields"]

    body = page.to_api()
    assert body["data"] == [{"id": "120", "name": "Launch", "status": "ACTIVE"}]
    assert body["pagination"]["hasNextPage"] is True
    assert body["pagination"]["nextCursor"] == "A"


@pytest.mark.asyncio
async def test_list_adsets_filters_by_campaign(fake, endpoints):
    fake.queue({"data": []})
    await endpoints.list_adsets("act_42", campaign_id="120")

    call = fake.calls[0]
    assert call.path == "act_42/adsets"
    assert call.params["limit"] == DEFAULT_LIMIT
    assert json.loads(call.params["filtering"]) == [
        {"field": "campaign.id", "operator": "EQUAL", "value": "120"}
    ]


@pytest.mark.asyncio
async def test_list_ads_filters_by_adset(fake, endpoints):
    fake.queue({"data": [{"id": "340"}]})
    page = await endpoints.list_ads("42", adset_id="230")

    assert json.loads(fake.calls[0].params["filtering"]) == [
        {"field": "adset.id", "operator": "EQUAL", "value": "230"}
    ]
    assert [ad.id for ad in page.data] == ["340"]


@pytest.mark.asyncio
async def test_list_audiences_drops_unnamed(fake, endpoints):
    fake.queue(
        {
            "data": [
                {"id": "a1", "name": "Buyers", "approximate_count_lower_bound": 1000},
                {"id": "a2"},
            ]
        }
    )
    audiences = await endpoints.list_audiences("42")

    assert fake.calls[0].path == "act_42/customaudiences"
    assert fake.calls[0].params["limit"] == 200
    assert [a.id for a in audiences] == ["a1"]


class TestInsights:
    @pytest.mark.asyncio
    async def test_date_preset_single_snapshot(self, fake, endpoints):
        fake.queue({"data": [{"spend": "10.00", "date_start": "2026-09-01"}]})
        result = await endpoints.get_insights("230", date_preset="last_30d")

        assert fake.calls[0].path == "230/insights"
        assert fake.calls[0].params["date_preset"] == "last_30d"
        assert "time_increment" not in fake.calls[0].params
        assert result.to_api() == {
            "insights": {"spend": "10.00", "dateStart": "2026-09-01"}
        }

    @pytest.mark.asyncio
    async def test_time_range_with_increment_returns_series(self, fake, endpoints):
        fake.queue({"data": [{"spend": "1"}, {"spend": "2"}]})
        result = await endpoints.get_insights(
            "230", since="2026-09-01", until="2026-09-02", time_increment="1"
        )

        params = fake.calls[0].params
        assert json.loads(params["time_range"]) == {
            "since": "2026-09-01",
            "until": "2026-09-02",
        }
        assert params["time_increment"] == "1"
        assert "date_preset" not in params
        assert result.to_api() == {"insightsArray": [{"spend": "1"}, {"spend": "2"}]}

    @pytest.mark.asyncio
    async def test_no_default_window_is_applied(self, fake, endpoints):
        fake.queue({"data": []})
        result = await endpoints.get_insights("230", since="2026-09-01")

        params = fake.calls[0].params
        assert "date_preset" not in params
        assert "time_range" not in params
        assert result.to_api() == {}

    @pytest.mark.asyncio
    async def test_increment_with_no_rows_is_empty_snapshot(self, fake, endpoints):
        fake.queue({"data": []})
        result = await endpoints.get_insights("230", time_increment="1")
        assert result.insights is None
        assert result.insights_array is None


@pytest.mark.asyncio
async def test_set_status_posts_only_status(fake, endpoints):
    fake.queue({"success": True})
    await endpoints.set_status("120", "PAUSED")
    assert fake.calls[0].method == "POST"
    assert fake.calls[0].path == "120"
    assert fake.calls[0].body == {"status": "PAUSED"}


@pytest.mark.asyncio
async def test_list_ad_accounts_reads_me_edge(fake, endpoints):
    fake.queue(
        {
            "id": "fb-1",
            "adaccounts": {
                "data": [
                    {"id": "act_1", "account_id": "1", "owner": 555, "balance": 0},
                    {"id": "act_2", "account_id": "2", "business": {"id": "b-1"}},
                ]
            },
        }
    )
    accounts = await endpoints.list_ad_accounts()

    assert fake.calls[0].path == "me"
    assert fake.calls[0].params["fields"].startswith("id,adaccounts{")
    assert [a.id for a in accounts] == ["act_1", "act_2"]
    assert accounts[0].owner == "555"
    assert accounts[0].balance == "0"
    assert accounts[1].business_id == "b-1"


@pytest.mark.asyncio
async def test_list_ad_accounts_without_edge(fake, endpoints):
    fake.queue({"id": "fb-1"})
    assert await endpoints.list_ad_accounts() == []
