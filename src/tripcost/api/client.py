from __future__ import annotations

from typing import Any, Optional

import httpx

from tripcost.logging import get_logger, http_logger
from tripcost.services.members import Member, build_members
from tripcost.services.report import CostCategory, CostReport, build_cost_report


CATEGORY_ENDPOINTS = {
    CostCategory.FLIGHTS: "/api/flights",
    CostCategory.LODGING: "/api/lodgings",
    CostCategory.TOURS: "/api/tours",
}


class TripApiError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TripNotFoundError(TripApiError):
    pass


class TripApiClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._log = get_logger(__name__)

    async def __aenter__(self) -> TripApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()
        self._log.info("api.client.closed")

    async def get_json(self, path: str, params: Optional[dict[str, str]] = None) -> Any:
        http_logger.info("http.get", path=path, params=params)
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as exc:
            raise TripApiError(f"Request to {path} failed: {exc}") from exc

        if response.is_error:
            raise TripApiError(_error_message(response, path), status_code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise TripApiError(f"{path} returned invalid JSON", status_code=response.status_code) from exc

    async def list_trips(self) -> list[dict[str, Any]]:
        return await self.get_json("/api/trips")

    async def get_trip(self, trip_id: str) -> Optional[dict[str, Any]]:
        for trip in await self.list_trips():
            if str(trip.get("id")) == trip_id:
                return trip
        return None

    async def list_group_members(self, group_id: str) -> list[Member]:
        rows = await self.get_json(f"/api/groups/{group_id}/members")
        return build_members(rows)

    async def list_flights(self, trip_id: str) -> list[dict[str, Any]]:
        return await self.list_category(CostCategory.FLIGHTS, trip_id)

    async def list_lodgings(self, trip_id: str) -> list[dict[str, Any]]:
        return await self.list_category(CostCategory.LODGING, trip_id)

    async def list_tours(self, trip_id: str) -> list[dict[str, Any]]:
        return await self.list_category(CostCategory.TOURS, trip_id)

    async def list_category(self, category: CostCategory, trip_id: str) -> list[dict[str, Any]]:
        endpoint = CATEGORY_ENDPOINTS.get(category)
        if endpoint is None:
            # rental cars are kept on the device, the backend has nothing to serve
            return []
        return await self.get_json(endpoint, params={"tripId": trip_id})

    async def fetch_cost_report(
        self,
        trip_id: str,
        *,
        fallback_on_empty: bool = False,
    ) -> tuple[CostReport, list[Member]]:
        trip = await self.get_trip(trip_id)
        if trip is None:
            raise TripNotFoundError(f"Trip {trip_id} not found", status_code=404)

        group_id = trip.get("groupId") or trip.get("group_id")
        if not group_id:
            raise TripApiError(f"Trip {trip_id} has no group")

        members = await self.list_group_members(str(group_id))
        records = {category: await self.list_category(category, trip_id) for category in CostCategory}
        report = build_cost_report(
            trip_id,
            [member.id for member in members],
            records,
            fallback_on_empty=fallback_on_empty,
        )
        report.trip_name = trip.get("name")
        return report, members


def _error_message(response: httpx.Response, path: str) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return f"{path} returned HTTP {response.status_code}"


_global_client: TripApiClient | None = None


def set_global_client(client: TripApiClient) -> None:
    global _global_client
    _global_client = client


def get_global_client() -> TripApiClient:
    if _global_client is None:
        raise RuntimeError("Trip API client is not initialised")
    return _global_client
