from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping


@dataclass(slots=True)
class Member:
    id: str
    label: str


def member_label(row: Mapping[str, Any]) -> str:
    guest_name = (row.get("guestName") or "").strip()
    if guest_name:
        return guest_name
    full_name = " ".join(
        part.strip() for part in (row.get("firstName") or "", row.get("lastName") or "") if part.strip()
    )
    if full_name:
        return full_name
    email = (row.get("email") or row.get("userEmail") or "").strip()
    if email:
        return email
    return str(row.get("id", ""))


def build_members(rows: Iterable[Mapping[str, Any]]) -> list[Member]:
    """Members in backend order; that order picks who absorbs rounding remainders."""
    members: list[Member] = []
    for row in rows:
        member_id = row.get("id")
        if not member_id:
            continue
        members.append(Member(id=str(member_id), label=member_label(row)))
    return members
