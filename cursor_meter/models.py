"""Typed records for the usage-summary and usage-events responses.

Amounts are in cents. Records are rebuilt from scratch on every fetch and
never mutated afterwards.
"""

import math
from dataclasses import dataclass, field
from typing import Any

from cursor_meter.errors import ShapeError

INCLUDED_KIND_MARKER = "INCLUDED"


def _is_number(value: Any) -> bool:
    """Finite int or float; JSON NaN/Infinity and booleans do not count."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    return math.isfinite(value)


def _number(data: dict, key: str, default: float = 0) -> float:
    value = data.get(key, default)
    return value if _is_number(value) else default


def _optional_int(data: dict, key: str) -> int | None:
    value = data.get(key)
    return int(value) if _is_number(value) else None


# ---------------------------------------------------------------------------
# Usage summary
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlanBreakdown:
    included: float = 0
    bonus: float = 0
    total: float = 0


@dataclass(frozen=True)
class PlanUsage:
    enabled: bool
    used: float
    limit: float
    remaining: float = 0
    breakdown: PlanBreakdown = field(default_factory=PlanBreakdown)
    auto_spend: float = 0
    api_spend: float = 0
    auto_limit: float = 0
    api_limit: float = 0


@dataclass(frozen=True)
class OnDemandUsage:
    enabled: bool
    used: float
    limit: float
    remaining: float = 0


@dataclass(frozen=True)
class UsageSummary:
    plan: PlanUsage
    on_demand: OnDemandUsage | None = None
    billing_cycle_start: str = ""
    billing_cycle_end: str = ""
    membership_type: str = ""
    limit_type: str = ""
    is_unlimited: bool = False


def _parse_plan(data: Any) -> PlanUsage:
    if not isinstance(data, dict):
        raise ShapeError("individualUsage.plan is missing")
    if not isinstance(data.get("enabled"), bool):
        raise ShapeError("plan.enabled must be a boolean")
    if not _is_number(data.get("used")) or not _is_number(data.get("limit")):
        raise ShapeError("plan.used and plan.limit must be numbers")
    raw_breakdown = data.get("breakdown")
    breakdown = PlanBreakdown()
    if isinstance(raw_breakdown, dict):
        breakdown = PlanBreakdown(
            included=_number(raw_breakdown, "included"),
            bonus=_number(raw_breakdown, "bonus"),
            total=_number(raw_breakdown, "total"),
        )
    return PlanUsage(
        enabled=data["enabled"],
        used=data["used"],
        limit=data["limit"],
        remaining=_number(data, "remaining"),
        breakdown=breakdown,
        auto_spend=_number(data, "autoSpend"),
        api_spend=_number(data, "apiSpend"),
        auto_limit=_number(data, "autoLimit"),
        api_limit=_number(data, "apiLimit"),
    )


def _parse_on_demand(data: Any) -> OnDemandUsage | None:
    """On-demand usage is optional; a malformed block is treated as absent."""
    if not isinstance(data, dict):
        return None
    if not isinstance(data.get("enabled"), bool):
        return None
    if not _is_number(data.get("used")) or not _is_number(data.get("limit")):
        return None
    return OnDemandUsage(
        enabled=data["enabled"],
        used=data["used"],
        limit=data["limit"],
        remaining=_number(data, "remaining"),
    )


def parse_summary(payload: Any) -> UsageSummary:
    if not isinstance(payload, dict):
        raise ShapeError("usage summary must be a JSON object")
    individual = payload.get("individualUsage")
    if not isinstance(individual, dict):
        raise ShapeError("individualUsage is missing")
    return UsageSummary(
        plan=_parse_plan(individual.get("plan")),
        on_demand=_parse_on_demand(individual.get("onDemand")),
        billing_cycle_start=str(payload.get("billingCycleStart") or ""),
        billing_cycle_end=str(payload.get("billingCycleEnd") or ""),
        membership_type=str(payload.get("membershipType") or ""),
        limit_type=str(payload.get("limitType") or ""),
        is_unlimited=payload.get("isUnlimited") is True,
    )


# ---------------------------------------------------------------------------
# Usage events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TokenUsage:
    total_cents: float | None
    input_tokens: int | None = None
    output_tokens: int | None = None
    cache_write_tokens: int | None = None
    cache_read_tokens: int | None = None


@dataclass(frozen=True)
class UsageEvent:
    timestamp: str
    model: str
    kind: str
    requests_costs: float = 0
    token_usage: TokenUsage | None = None
    usage_based_costs: str | float = ""
    is_token_based_call: bool = False
    owning_user: str = ""
    cursor_token_fee: float = 0
    is_chargeable: bool = False

    @property
    def is_well_formed(self) -> bool:
        """True when tokenUsage.totalCents is present and numeric."""
        return self.token_usage is not None and _is_number(self.token_usage.total_cents)

    @property
    def is_included(self) -> bool:
        return INCLUDED_KIND_MARKER in self.kind

    @property
    def total_cents(self) -> float:
        token_cents = self.token_usage.total_cents if self.is_well_formed else 0
        return self.requests_costs + token_cents


@dataclass(frozen=True)
class UsageEventsPage:
    total_count: int
    events: list[UsageEvent]


def _parse_token_usage(data: Any) -> TokenUsage | None:
    if not isinstance(data, dict):
        return None
    total = data.get("totalCents")
    return TokenUsage(
        total_cents=total if _is_number(total) else None,
        input_tokens=_optional_int(data, "inputTokens"),
        output_tokens=_optional_int(data, "outputTokens"),
        cache_write_tokens=_optional_int(data, "cacheWriteTokens"),
        cache_read_tokens=_optional_int(data, "cacheReadTokens"),
    )


def parse_event(payload: Any) -> UsageEvent:
    """Parse one event leniently: anything malformed survives as is_well_formed=False."""
    if not isinstance(payload, dict):
        return UsageEvent(timestamp="", model="", kind="")
    usage_based = payload.get("usageBasedCosts", "")
    return UsageEvent(
        timestamp=str(payload.get("timestamp", "")),
        model=str(payload.get("model", "")),
        kind=str(payload.get("kind", "")),
        requests_costs=_number(payload, "requestsCosts"),
        token_usage=_parse_token_usage(payload.get("tokenUsage")),
        usage_based_costs=usage_based if isinstance(usage_based, (str, int, float)) else "",
        is_token_based_call=payload.get("isTokenBasedCall") is True,
        owning_user=str(payload.get("owningUser", "")),
        cursor_token_fee=_number(payload, "cursorTokenFee"),
        is_chargeable=payload.get("isChargeable") is True,
    )


def parse_events_page(payload: Any) -> UsageEventsPage:
    if not isinstance(payload, dict):
        raise ShapeError("usage events response must be a JSON object")
    raw_events = payload.get("usageEventsDisplay") or []
    if not isinstance(raw_events, list):
        raise ShapeError("usageEventsDisplay must be a list")
    total = payload.get("totalUsageEventsCount")
    return UsageEventsPage(
        total_count=int(total) if _is_number(total) else len(raw_events),
        events=[parse_event(e) for e in raw_events],
    )
