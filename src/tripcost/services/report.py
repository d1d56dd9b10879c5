from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from html import escape
from typing import Any, Iterable, Mapping, Optional, Sequence

from tripcost.logging import get_logger
from tripcost.services.split import balance_category, compute_totals, merge_totals


class CostCategory(str, Enum):
    FLIGHTS = "flights"
    LODGING = "lodging"
    TOURS = "tours"
    RENTALS = "rentals"


CATEGORY_COST_FIELDS: dict[CostCategory, tuple[str, ...]] = {
    CostCategory.FLIGHTS: ("cost",),
    CostCategory.LODGING: ("totalCost", "total_cost"),
    CostCategory.TOURS: ("cost",),
    CostCategory.RENTALS: ("cost",),
}


CATEGORY_LABELS = {
    CostCategory.FLIGHTS: "✈️ Flights",
    CostCategory.LODGING: "🏨 Lodging",
    CostCategory.TOURS: "🗺 Tours",
    CostCategory.RENTALS: "🚗 Rental cars",
}


@dataclass(slots=True)
class CategoryReport:
    category: CostCategory
    total: float
    payer_totals: dict[str, float]
    balanced: dict[str, float]
    item_count: int = 0


@dataclass(slots=True)
class CostReport:
    trip_id: str
    member_ids: Sequence[str]
    categories: dict[CostCategory, CategoryReport] = field(default_factory=dict)
    overall: dict[str, float] = field(default_factory=dict)
    grand_total: float = 0.0
    trip_name: Optional[str] = None


_DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?Infinity")
_RADIX_RE = re.compile(r"0(?:[xX](?P<hex>[0-9a-fA-F]+)|[oO](?P<oct>[0-7]+)|[bB](?P<bin>[01]+))")


def _parse_number(text: str) -> float:
    """String to number with the grammar of JavaScript's ``Number()``; NaN when it does not parse."""
    radix = _RADIX_RE.fullmatch(text)
    if radix:
        base = {"hex": 16, "oct": 8, "bin": 2}[radix.lastgroup]
        try:
            return float(int(radix.group(radix.lastgroup), base))
        except OverflowError:
            return math.inf
    if _DECIMAL_RE.fullmatch(text):
        return float(text)
    return math.nan


def coerce_cost(raw: Any) -> float:
    """Read a cost the way the backend's clients do (``Number(raw) || 0``): anything unusable counts as 0."""
    if isinstance(raw, bool):
        return 1.0 if raw else 0.0
    if isinstance(raw, Decimal):
        value = math.nan if raw.is_nan() else float(raw)
    elif isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            value = math.copysign(math.inf, raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return 0.0
        value = _parse_number(text)
    else:
        return 0.0
    return 0.0 if math.isnan(value) else value


def record_cost(category: CostCategory, record: Mapping[str, Any]) -> float:
    for field_name in CATEGORY_COST_FIELDS[category]:
        value = record.get(field_name)
        if value is not None:
            return coerce_cost(value)
    return 0.0


def read_payers(record: Mapping[str, Any]) -> Optional[list[str]]:
    """Payer ids of a record, or None when payers were never recorded."""
    raw = record.get("paidBy")
    if raw is None:
        raw = record.get("paid_by")
    if raw is None:
        return None
    if isinstance(raw, (list, tuple)):
        return [str(payer_id) for payer_id in raw if payer_id]
    return []


def build_category_report(
    category: CostCategory,
    records: Sequence[Mapping[str, Any]],
    member_ids: Sequence[str],
    *,
    fallback_on_empty: bool = False,
    total: Optional[float] = None,
) -> CategoryReport:
    def get_cost(record: Mapping[str, Any]) -> float:
        return record_cost(category, record)

    payer_totals = compute_totals(
        records,
        get_cost,
        read_payers,
        member_ids,
        fallback_on_empty=fallback_on_empty,
    )
    if total is None:
        total = sum(get_cost(record) for record in records)

    return CategoryReport(
        category=category,
        total=total,
        payer_totals=payer_totals,
        balanced=balance_category(total, payer_totals, member_ids),
        item_count=len(records),
    )


def build_cost_report(
    trip_id: str,
    member_ids: Sequence[str],
    records_by_category: Mapping[CostCategory, Sequence[Mapping[str, Any]]],
    *,
    fallback_on_empty: bool = False,
    totals: Optional[Mapping[CostCategory, float]] = None,
) -> CostReport:
    """Balance every category against its total and sum the results per member.

    ``totals`` overrides the authoritative total of a category; otherwise it is
    the sum of the category's record costs.
    """
    report = CostReport(trip_id=trip_id, member_ids=list(member_ids))
    for category in CostCategory:
        report.categories[category] = build_category_report(
            category,
            records_by_category.get(category, ()),
            report.member_ids,
            fallback_on_empty=fallback_on_empty,
            total=(totals or {}).get(category),
        )

    report.overall = merge_totals(
        (category_report.balanced for category_report in report.categories.values()),
        report.member_ids,
    )
    report.grand_total = sum(category_report.total for category_report in report.categories.values())

    get_logger(__name__).info(
        "cost_report.built",
        trip_id=trip_id,
        members=len(report.member_ids),
        grand_total=report.grand_total,
    )
    return report


def format_amount(value: float) -> str:
    return f"{value:,.2f}"


def _member_lines(amounts: Mapping[str, float], member_ids: Iterable[str], labels: Mapping[str, str]) -> list[str]:
    return [
        f"  {escape(labels.get(member_id, member_id))}: {format_amount(amounts.get(member_id, 0.0))}"
        for member_id in member_ids
    ]


def format_cost_report(report: CostReport, labels: Mapping[str, str]) -> str:
    name = report.trip_name or f"trip {report.trip_id}"
    header = f"<b>💰 Costs for {escape(name)}</b>"
    lines = [header]

    if not report.member_ids:
        lines.append("No travellers in this trip yet.")
        return "\n".join(lines)

    for category, category_report in report.categories.items():
        if not category_report.item_count and not category_report.total:
            continue
        lines.append("")
        lines.append(f"{CATEGORY_LABELS[category]}: {format_amount(category_report.total)}")
        lines.extend(_member_lines(category_report.balanced, report.member_ids, labels))

    lines.append("")
    lines.append(f"<b>Overall: {format_amount(report.grand_total)}</b>")
    lines.extend(_member_lines(report.overall, report.member_ids, labels))
    return "\n".join(lines)
