from __future__ import annotations

from html import escape
from typing import Any, Iterable, Mapping

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup, Message

from tripcost.api.client import TripApiError, TripNotFoundError, get_global_client
from tripcost.config import get_settings
from tripcost.logging import get_logger
from tripcost.services.report import format_cost_report

costs_router = Router()


def extract_trip_id(text: str) -> str | None:
    parts = text.split()
    if len(parts) >= 2 and parts[1].strip():
        return parts[1].strip()
    return None


def format_trip_list(trips: Iterable[Mapping[str, Any]]) -> str:
    lines = ["<b>🧳 Your trips</b>"]
    count = 0
    for trip in trips:
        count += 1
        group = f" ({escape(str(trip['groupName']))})" if trip.get("groupName") else ""
        lines.append(f"• {escape(str(trip.get('name') or 'Untitled'))}{group}: <code>{escape(str(trip['id']))}</code>")
    if not count:
        return "You are not part of any trips yet."
    return "\n".join(lines)


def build_trips_keyboard(trips: Iterable[Mapping[str, Any]]) -> InlineKeyboardMarkup:
    rows = [
        [InlineKeyboardButton(text=f"💰 {trip.get('name') or trip['id']}", callback_data=f"costs:{trip['id']}")]
        for trip in trips
    ]
    return InlineKeyboardMarkup(inline_keyboard=rows)


async def _render_costs(trip_id: str) -> str:
    client = get_global_client()
    settings = get_settings()
    log = get_logger(__name__)
    try:
        report, members = await client.fetch_cost_report(
            trip_id,
            fallback_on_empty=settings.cost_fallback_on_empty,
        )
    except TripNotFoundError:
        return "Trip not found. Use /trips to see your trips."
    except TripApiError as exc:
        log.warning("costs.fetch_failed", trip_id=trip_id, error=str(exc), status_code=exc.status_code)
        return "Unable to load trip costs right now, try again later."

    labels = {member.id: member.label for member in members}
    return format_cost_report(report, labels)


@costs_router.message(Command("trips"))
async def cmd_trips(message: Message) -> None:
    client = get_global_client()
    try:
        trips = await client.list_trips()
    except TripApiError:
        await message.answer("Unable to load trips right now, try again later.")
        return
    await message.answer(format_trip_list(trips), reply_markup=build_trips_keyboard(trips))


@costs_router.callback_query(lambda c: c.data == "menu:trips")
async def cb_trips(callback: CallbackQuery) -> None:
    client = get_global_client()
    try:
        trips = await client.list_trips()
    except TripApiError:
        await callback.answer("Unable to load trips", show_alert=True)
        return
    if callback.message:
        await callback.message.answer(format_trip_list(trips), reply_markup=build_trips_keyboard(trips))
    await callback.answer()


@costs_router.message(Command("costs"))
async def cmd_costs(message: Message) -> None:
    if not message.text:
        return
    trip_id = extract_trip_id(message.text)
    if trip_id is None:
        await message.answer("Usage: /costs <trip_id>\nUse /trips to find the id.")
        return
    await message.answer(await _render_costs(trip_id))


@costs_router.callback_query(lambda c: c.data and c.data.startswith("costs:"))
async def cb_costs(callback: CallbackQuery) -> None:
    trip_id = callback.data.split(":", 1)[1]
    if callback.message:
        await callback.message.answer(await _render_costs(trip_id))
    await callback.answer()
