"""Turns usage records into status text and tooltip content."""

import html
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from cursor_meter.models import UsageEvent, UsageSummary

APP_LABEL = "Cursor Meter"
ERROR_GLYPH = "⚠"
PLACEHOLDER_TITLE = "Cursor Usage Details"
PLACEHOLDER_TEXT = "Click to refresh and load usage details."

NO_TOKEN = "No token"
REFRESH_FAILED = "Refresh Failed"
PLAN_DISABLED = "Plan disabled"

UNINITIALIZED = "uninitialized"
DISPLAYING = "displaying"
ERROR = "error"


@dataclass(frozen=True)
class DisplayState:
    kind: str = UNINITIALIZED
    text: str = ""
    reason: str = ""

    @classmethod
    def displaying(cls, text: str) -> "DisplayState":
        return cls(kind=DISPLAYING, text=text)

    @classmethod
    def error(cls, reason: str) -> "DisplayState":
        return cls(kind=ERROR, reason=reason)


# ---------------------------------------------------------------------------
# Value formatting
# ---------------------------------------------------------------------------

def percentage(used: float, limit: float) -> float:
    """Percent of limit used, one decimal, halves rounded away from zero."""
    if limit == 0:
        return 0.0
    ratio = Decimal(str(used)) / Decimal(str(limit)) * 100
    return float(ratio.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def format_amount(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def usage_fraction(used: float, limit: float) -> str:
    return f"{format_amount(used)}/{format_amount(limit)} ({percentage(used, limit):.1f}%)"


def format_cents(cents: float) -> str:
    return f"${cents / 100:.4f}"


def format_tokens(tokens: int | None) -> str:
    if tokens is None:
        return "0"
    return f"{tokens:,}"


def format_timestamp(timestamp: str) -> str:
    """Epoch-milliseconds string -> local date/time in the current locale."""
    try:
        dt = datetime.fromtimestamp(int(timestamp) / 1000)
    except (ValueError, OverflowError, OSError):
        return timestamp or "—"
    return dt.strftime("%c")


# ---------------------------------------------------------------------------
# Status text
# ---------------------------------------------------------------------------

def render_summary(summary: UsageSummary) -> DisplayState:
    """Plan usage first, on-demand as fallback, disabled last."""
    plan = summary.plan
    on_demand = summary.on_demand
    if plan.enabled:
        text = usage_fraction(plan.used, plan.limit)
        if on_demand is not None and on_demand.enabled:
            text += f" | On-Demand: {usage_fraction(on_demand.used, on_demand.limit)}"
        return DisplayState.displaying(text)
    if on_demand is not None and on_demand.enabled:
        return DisplayState.displaying(f"On-Demand: {usage_fraction(on_demand.used, on_demand.limit)}")
    return DisplayState.error(PLAN_DISABLED)


def status_text(state: DisplayState) -> str:
    if state.kind == ERROR:
        return f"{ERROR_GLYPH} {APP_LABEL}: {state.reason}"
    if state.kind == DISPLAYING:
        return f"{APP_LABEL}: {state.text}"
    return f"{APP_LABEL}: …"


# ---------------------------------------------------------------------------
# Last-request detail view
# ---------------------------------------------------------------------------

def _token_rows(event: UsageEvent) -> list[tuple[str, str]]:
    usage = event.token_usage
    if usage is None:
        return []
    fields = [
        ("Input", usage.input_tokens),
        ("Output", usage.output_tokens),
        ("Cache Write", usage.cache_write_tokens),
        ("Cache Read", usage.cache_read_tokens),
    ]
    return [(label, format_tokens(value)) for label, value in fields if value is not None]


def _cost_rows(event: UsageEvent) -> list[tuple[str, str]]:
    token_cents = event.token_usage.total_cents if event.is_well_formed else 0
    return [
        ("Base Request", format_cents(event.requests_costs)),
        ("Token Usage", format_cents(token_cents)),
        ("Total", format_cents(event.total_cents)),
    ]


def event_status(event: UsageEvent) -> str:
    return "INCLUDED" if event.is_included else "CHARGED"


def event_details(event: UsageEvent | None) -> list[str]:
    """Plain-text detail lines, used by the terminal output."""
    if event is None:
        return [PLACEHOLDER_TITLE, PLACEHOLDER_TEXT]
    lines = ["Last Request", event.model, format_timestamp(event.timestamp), "Cost Breakdown:"]
    lines += [f"  {label}: {value}" for label, value in _cost_rows(event)]
    lines.append("Token Usage:")
    lines += [f"  {label}: {value}" for label, value in _token_rows(event)]
    lines.append(f"Status: {event_status(event)}")
    return lines


def event_tooltip(event: UsageEvent | None, error: str = "") -> str:
    """Qt rich-text tooltip for the status widget."""
    parts: list[str] = []
    if error:
        parts.append(f"<p style='color:#ef4444'>{ERROR_GLYPH} {html.escape(error)}</p>")
    if event is None:
        parts.append(f"<h3>{PLACEHOLDER_TITLE}</h3><p>{PLACEHOLDER_TEXT}</p>")
        return "".join(parts)

    def rows(items: list[tuple[str, str]], bold_last: bool = False) -> str:
        out = []
        for i, (label, value) in enumerate(items):
            item = f"{label}: <code>{html.escape(value)}</code>"
            if bold_last and i == len(items) - 1:
                item = f"<b>{item}</b>"
            out.append(f"<li>{item}</li>")
        return "<ul>" + "".join(out) + "</ul>"

    status = "✅ INCLUDED" if event.is_included else "💰 CHARGED"
    parts += [
        "<h3>Last Request</h3>",
        f"<p><b>{html.escape(event.model)}</b></p>",
        f"<p>📅 {html.escape(format_timestamp(event.timestamp))}</p>",
        "<p><b>Cost Breakdown:</b></p>",
        rows(_cost_rows(event), bold_last=True),
        "<p><b>Token Usage:</b></p>",
        rows(_token_rows(event)),
        f"<p><b>Status:</b> {status}</p>",
    ]
    return "".join(parts)
