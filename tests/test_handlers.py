import pytest

from tripcost.api import client as client_module
from tripcost.api.client import TripApiError, TripNotFoundError
from tripcost.handlers import costs as costs_module
from tripcost.handlers.costs import build_trips_keyboard, extract_trip_id, format_trip_list
from tripcost.services.members import Member
from tripcost.services.report import CostCategory, build_cost_report


class StubClient:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, bool]] = []

    async def fetch_cost_report(self, trip_id: str, *, fallback_on_empty: bool = False):
        self.calls.append((trip_id, fallback_on_empty))
        if self.error:
            raise self.error
        report = build_cost_report(
            trip_id,
            ["bryan", "vicky"],
            {CostCategory.TOURS: [{"cost": 30, "paidBy": ["vicky"]}]},
        )
        report.trip_name = "Lisbon"
        return report, [Member(id="bryan", label="Bryan"), Member(id="vicky", label="Vicky")]


def test_extract_trip_id():
    assert extract_trip_id("/costs abc-123") == "abc-123"
    assert extract_trip_id("/costs   abc  ") == "abc"
    assert extract_trip_id("/costs") is None


def test_format_trip_list():
    text = format_trip_list([
        {"id": "t1", "name": "Lisbon", "groupName": "Family"},
        {"id": "t2", "name": None},
    ])
    assert "Lisbon (Family): <code>t1</code>" in text
    assert "Untitled: <code>t2</code>" in text
    assert format_trip_list([]) == "You are not part of any trips yet."


def test_format_trip_list_non_string_group_name():
    text = format_trip_list([{"id": 7, "name": "Oslo", "groupName": 2025}])
    assert "Oslo (2025): <code>7</code>" in text


def test_build_trips_keyboard():
    keyboard = build_trips_keyboard([{"id": "t1", "name": "Lisbon"}, {"id": "t2"}])
    buttons = [row[0] for row in keyboard.inline_keyboard]
    assert [button.callback_data for button in buttons] == ["costs:t1", "costs:t2"]
    assert buttons[1].text == "💰 t2"


@pytest.mark.asyncio
async def test_render_costs(monkeypatch):
    stub = StubClient()
    monkeypatch.setattr(client_module, "_global_client", stub)
    monkeypatch.setenv("COST_FALLBACK_ON_EMPTY", "true")
    costs_module.get_settings.cache_clear()
    try:
        text = await costs_module._render_costs("trip-1")
    finally:
        costs_module.get_settings.cache_clear()

    assert stub.calls == [("trip-1", True)]
    assert "Costs for Lisbon" in text
    assert "  Bryan: 0.00" in text
    assert "  Vicky: 30.00" in text


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, expected",
    [
        (TripNotFoundError("Trip x not found", status_code=404), "Trip not found"),
        (TripApiError("boom", status_code=500), "Unable to load trip costs"),
    ],
)
async def test_render_costs_errors(monkeypatch, error, expected):
    monkeypatch.setattr(client_module, "_global_client", StubClient(error))
    assert expected in await costs_module._render_costs("x")
