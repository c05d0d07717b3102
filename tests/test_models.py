"""Tests for response parsing."""

import pytest

from conftest import event_payload, summary_payload
from cursor_meter.errors import ShapeError
from cursor_meter.models import parse_event, parse_events_page, parse_summary


class TestParseSummary:
    def test_full_summary(self):
        summary = parse_summary(summary_payload(
            on_demand={"enabled": True, "used": 10, "limit": 20, "remaining": 10},
        ))
        assert summary.plan.enabled is True
        assert summary.plan.used == 595
        assert summary.plan.limit == 40000
        assert summary.on_demand.used == 10
        assert summary.membership_type == "pro"
        assert summary.billing_cycle_end == "2026-11-01T00:00:00.000Z"

    def test_missing_plan_raises(self):
        payload = summary_payload()
        del payload["individualUsage"]["plan"]
        with pytest.raises(ShapeError):
            parse_summary(payload)

    def test_missing_individual_usage_raises(self):
        with pytest.raises(ShapeError):
            parse_summary({"membershipType": "pro"})

    def test_non_object_raises(self):
        with pytest.raises(ShapeError):
            parse_summary(["not", "an", "object"])

    @pytest.mark.parametrize("plan", [
        {"enabled": "yes", "used": 1, "limit": 2},
        {"enabled": True, "used": "1", "limit": 2},
        {"enabled": True, "used": 1},
        {"enabled": True, "used": True, "limit": 2},
    ])
    def test_malformed_plan_raises(self, plan):
        payload = summary_payload()
        payload["individualUsage"]["plan"] = plan
        with pytest.raises(ShapeError):
            parse_summary(payload)

    def test_malformed_on_demand_is_dropped(self):
        summary = parse_summary(summary_payload(on_demand={"enabled": True, "used": "lots"}))
        assert summary.on_demand is None

    def test_absent_on_demand(self):
        assert parse_summary(summary_payload()).on_demand is None


class TestParseEvents:
    def test_event_fields(self):
        event = parse_event(event_payload())
        assert event.model == "claude-4-sonnet"
        assert event.requests_costs == 4
        assert event.token_usage.input_tokens == 1200
        assert event.token_usage.cache_write_tokens is None
        assert event.is_well_formed
        assert event.is_included
        assert event.total_cents == 16.5

    def test_chargeable_kind(self):
        event = parse_event(event_payload(kind="USAGE_EVENT_KIND_USAGE_BASED"))
        assert not event.is_included

    def test_missing_total_cents_is_not_well_formed(self):
        event = parse_event(event_payload(tokenUsage={"inputTokens": 5}))
        assert not event.is_well_formed
        assert event.total_cents == 4

    def test_missing_token_usage_is_not_well_formed(self):
        payload = event_payload()
        del payload["tokenUsage"]
        assert not parse_event(payload).is_well_formed

    def test_page(self):
        page = parse_events_page({
            "totalUsageEventsCount": 42,
            "usageEventsDisplay": [event_payload(), event_payload(model="gpt-5")],
        })
        assert page.total_count == 42
        assert [e.model for e in page.events] == ["claude-4-sonnet", "gpt-5"]

    def test_page_without_events_list_raises(self):
        with pytest.raises(ShapeError):
            parse_events_page({"usageEventsDisplay": "nope"})

    @pytest.mark.parametrize("raw", [None, 1, "event", ["x"]])
    def test_non_object_event_is_not_well_formed(self, raw):
        page = parse_events_page({"usageEventsDisplay": [raw]})
        assert len(page.events) == 1
        assert not page.events[0].is_well_formed
        assert page.events[0].total_cents == 0

    def test_null_events_list_is_empty(self):
        page = parse_events_page({"usageEventsDisplay": None, "totalUsageEventsCount": 0})
        assert page.events == []
        assert page.total_count == 0

    def test_infinite_total_count_falls_back_to_length(self):
        page = parse_events_page({
            "totalUsageEventsCount": float("inf"),
            "usageEventsDisplay": [event_payload()],
        })
        assert page.total_count == 1


class TestNonFiniteNumbers:
    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_plan_usage_raises(self, value):
        payload = summary_payload()
        payload["individualUsage"]["plan"]["used"] = value
        with pytest.raises(ShapeError):
            parse_summary(payload)

    def test_non_finite_on_demand_is_dropped(self):
        summary = parse_summary(summary_payload(
            on_demand={"enabled": True, "used": float("nan"), "limit": 20},
        ))
        assert summary.on_demand is None

    def test_non_finite_token_count_is_absent(self):
        event = parse_event(event_payload(tokenUsage={"totalCents": 1, "inputTokens": float("nan")}))
        assert event.token_usage.input_tokens is None
        assert event.is_well_formed

    def test_non_finite_total_cents_is_not_well_formed(self):
        event = parse_event(event_payload(tokenUsage={"totalCents": float("inf")}))
        assert not event.is_well_formed
        assert event.total_cents == 4

    def test_non_finite_requests_costs_defaults_to_zero(self):
        event = parse_event(event_payload(requestsCosts=float("nan")))
        assert event.requests_costs == 0
