"""Tests for Graph → read model transformers."""

from backoffice.connectors.meta.transformer import (
    pick_conversion_value,
    transform_ad,
    transform_adset,
    transform_audience,
    transform_campaign,
    transform_insights,
    transform_insights_row,
    transform_paging,
)

INSIGHTS_ROW = {
    "spend": "123.45",
    "impressions": "10000",
    "clicks": "250",
    "reach": "8000",
    "cpc": "0.49",
    "cpm": "12.34",
    "ctr": "2.5",
    "cpp": "15.43",
    "frequency": "1.25",
    "actions": [
        {"action_type": "link_click", "value": "240"},
        {"action_type": "lead", "value": "3"},
        {"action_type": "purchase", "value": "1"},
    ],
    "cost_per_action_type": [
        {"action_type": "lead", "value": "41.15"},
        {"action_type": "purchase", "value": "123.45"},
    ],
    "date_start": "2026-09-01",
    "date_stop": "2026-09-30",
}


class TestPaging:
    def test_next_link_without_cursors(self):
        page = transform_paging({"next": "x"})
        assert page.has_next_page is True
        assert page.has_previous_page is False
        assert page.next_cursor is None
        assert page.previous_cursor is None

    def test_cursors_copied_verbatim_even_without_links(self):
        page = transform_paging({"cursors": {"after": "QVFI==", "before": "MjM0"}})
        assert page.has_next_page is False
        assert page.next_cursor == "QVFI=="
        assert page.previous_cursor == "MjM0"

    def test_missing_paging(self):
        assert transform_paging(None).to_api() == {
            "hasNextPage": False,
            "hasPreviousPage": False,
        }


class TestConversions:
    def test_purchase_beats_lead_regardless_of_order(self):
        metrics = transform_insights_row(INSIGHTS_ROW)
        assert metrics.conversions == "1"
        assert metrics.cost_per_conversion == "123.45"

        reversed_row = dict(
            INSIGHTS_ROW,
            actions=list(reversed(INSIGHTS_ROW["actions"])),
            cost_per_action_type=list(reversed(INSIGHTS_ROW["cost_per_action_type"])),
        )
        metrics = transform_insights_row(reversed_row)
        assert metrics.conversions == "1"
        assert metrics.cost_per_conversion == "123.45"

    def test_lead_beats_complete_registration(self):
        entries = [
            {"action_type": "complete_registration", "value": "9"},
            {"action_type": "lead", "value": "4"},
        ]
        assert pick_conversion_value(entries) == "4"

    def test_no_recognised_action(self):
        row = {"actions": [{"action_type": "link_click", "value": "12"}]}
        metrics = transform_insights_row(row)
        assert metrics.conversions is None
        assert metrics.cost_per_conversion is None

    def test_numeric_values_become_strings(self):
        assert pick_conversion_value([{"action_type": "purchase", "value": 7}]) == "7"


class TestInsights:
    def test_first_row_of_edge(self):
        metrics = transform_insights({"data": [INSIGHTS_ROW, {"spend": "0"}]})
        assert metrics.spend == "123.45"
        assert metrics.to_api()["dateStart"] == "2026-09-01"

    def test_empty_edge(self):
        assert transform_insights(None) is None
        assert transform_insights({"data": []}) is None


class TestEntities:
    def test_campaign_without_insights(self):
        campaign = transform_campaign({"id": "120", "name": "Launch"})
        assert campaign.insights is None
        assert campaign.to_api() == {"id": "120", "name": "Launch"}

    def test_campaign_keeps_status_and_effective_status_apart(self):
        campaign = transform_campaign(
            {
                "id": "120",
                "status": "ACTIVE",
                "effective_status": "IN_PROCESS",
                "daily_budget": "5000",
                "insights": {"data": [INSIGHTS_ROW]},
            }
        )
        body = campaign.to_api()
        assert body["status"] == "ACTIVE"
        assert body["effectiveStatus"] == "IN_PROCESS"
        assert body["dailyBudget"] == "5000"
        assert body["insights"]["conversions"] == "1"

    def test_adset_with_targeting(self):
        adset = transform_adset(
            {
                "id": "230",
                "campaign_id": "120",
                "daily_budget": "5000",
                "bid_amount": 150,
                "targeting": {
                    "age_min": 25,
                    "age_max": 45,
                    "genders": [2],
                    "geo_locations": {"countries": ["BR"], "location_types": ["home"]},
                    "custom_audiences": [{"id": "a1", "name": "Buyers"}],
                    "publisher_platforms": ["facebook"],
                },
            }
        )
        body = adset.to_api()
        assert body["campaignId"] == "120"
        assert body["bidAmount"] == "150"
        assert body["targeting"]["age_min"] == 25
        assert body["targeting"]["geo_locations"]["countries"] == ["BR"]
        assert body["targeting"]["custom_audiences"] == [{"id": "a1", "name": "Buyers"}]
        assert body["targeting"]["publisher_platforms"] == ["facebook"]

    def test_ad_with_creative(self):
        ad = transform_ad(
            {
                "id": "340",
                "adset_id": "230",
                "creative": {
                    "id": "c1",
                    "thumbnail_url": "https://cdn.example.com/t.jpg",
                    "effective_object_story_id": "1_2",
                },
            }
        )
        body = ad.to_api()
        assert body["adsetId"] == "230"
        assert body["creative"] == {
            "id": "c1",
            "thumbnailUrl": "https://cdn.example.com/t.jpg",
            "effectiveObjectStoryId": "1_2",
        }
        assert "insights" not in body

    def test_audience(self):
        audience = transform_audience(
            {
                "id": "a1",
                "name": "Buyers",
                "subtype": "CUSTOM",
                "approximate_count_lower_bound": 1000,
                "approximate_count_upper_bound": 1200,
            }
        )
        assert audience.to_api() == {
            "id": "a1",
            "name": "Buyers",
            "subtype": "CUSTOM",
            "approximateCount": 1000,
        }
