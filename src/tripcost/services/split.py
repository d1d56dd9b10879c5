from __future__ import annotations

from typing import Callable, Iterable, Mapping, Optional, Sequence, TypeVar

from tripcost.services.tolerance import exceeds_tolerance

T = TypeVar("T")


def compute_totals(
    items: Iterable[T],
    get_cost: Callable[[T], float],
    get_payers: Callable[[T], Optional[Sequence[str]]],
    fallback_payers: Sequence[str],
    *,
    fallback_on_empty: bool = False,
) -> dict[str, float]:
    """Accumulate what each payer covered across ``items``.

    Every id in ``fallback_payers`` is reported, at 0 when nothing is assigned to it.
    A payer list of ``None`` was never recorded and always falls back to
    ``fallback_payers``; an empty list only falls back when ``fallback_on_empty`` is set.
    The division remainder of each item goes to the first payer of that item, so
    payer order has to be stable between calls for the output to be reproducible.
    """
    totals: dict[str, float] = {payer_id: 0.0 for payer_id in fallback_payers}

    for item in items:
        cost = get_cost(item)
        payers_raw = get_payers(item)
        payers = [payer_id for payer_id in payers_raw or () if payer_id]

        should_fallback = not payers if fallback_on_empty else payers_raw is None
        if payers:
            effective: Sequence[str] = payers
        elif should_fallback:
            effective = fallback_payers
        else:
            effective = ()

        if not cost or not effective:
            continue

        n = len(effective)
        share = cost / n
        for payer_id in effective:
            totals[payer_id] = totals.get(payer_id, 0.0) + share

        remainder = cost - share * n
        if exceeds_tolerance(remainder) and effective[0]:
            totals[effective[0]] = totals.get(effective[0], 0.0) + remainder

    return totals


def balance_category(
    total: float,
    per_member_totals: Mapping[str, float],
    member_ids: Sequence[str],
) -> dict[str, float]:
    """Force per-member totals to add up to the authoritative category ``total``.

    Any shortfall or surplus is spread evenly over ``member_ids``; what the even
    split itself loses to rounding goes to ``member_ids[0]``.
    """
    balanced: dict[str, float] = {}
    for member_id in member_ids:
        amount = per_member_totals.get(member_id)
        balanced[member_id] = 0.0 if amount is None else float(amount)

    assigned = sum(balanced[member_id] for member_id in member_ids)
    remainder = total - assigned
    if exceeds_tolerance(remainder) and member_ids:
        even_share = remainder / len(member_ids)
        for member_id in member_ids:
            balanced[member_id] += even_share

        after_even = sum(balanced[member_id] for member_id in member_ids)
        adjust = total - after_even
        if exceeds_tolerance(adjust):
            balanced[member_ids[0]] += adjust

    return balanced


def merge_totals(
    totals: Iterable[Mapping[str, float]],
    member_ids: Optional[Sequence[str]] = None,
) -> dict[str, float]:
    result: dict[str, float] = {member_id: 0.0 for member_id in member_ids or ()}
    for share in totals:
        for member_id, amount in share.items():
            result[member_id] = result.get(member_id, 0.0) + amount
    return result
