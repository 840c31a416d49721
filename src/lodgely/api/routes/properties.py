"""Property calendar, quote and blocked-date endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from fastapi.responses import Response
from pydantic import BaseModel, Field

from lodgely.api.auth import CurrentUser, get_current_user
from lodgely.api.errors import to_http
from lodgely.domain import blocked_dates
from lodgely.domain.errors import ReservationError
from lodgely.domain.reservation_requests import availability_calendar, quote_stay

router = APIRouter(prefix="/properties", tags=["properties"])


class BlockDatesBody(BaseModel):
    start: date
    end: date | None = None
    reason: str | None = Field(default=None, max_length=200)


def _iso(days) -> list[str]:
    return [d.isoformat() for d in days]


@router.get("/{property_id}/availability")
def get_availability(
    property_id: str = Path(...),
    from_date: date = Query(..., alias="from"),
    to_date: date = Query(..., alias="to"),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Dates to disable in a calendar for ``[from, to)``.

    Display only; create and approve re-check availability themselves.
    """
    try:
        calendar = availability_calendar(property_id, from_date, to_date)
    except ReservationError as exc:
        raise to_http(exc)

    return {
        "property_id": property_id,
        "from": from_date.isoformat(),
        "to": to_date.isoformat(),
        "minimum_stay_nights": calendar["minimum_stay_nights"],
        "blocked_dates": _iso(calendar["blocked_dates"]),
        "unavailable_dates": _iso(calendar["unavailable_dates"]),
    }


@router.get("/{property_id}/quote")
def get_quote(
    property_id: str = Path(...),
    check_in: date = Query(...),
    check_out: date = Query(...),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    try:
        result = quote_stay(property_id, check_in, check_out)
    except ReservationError as exc:
        raise to_http(exc)

    conflict = result["conflict"]
    return {
        "property_id": property_id,
        "check_in": check_in.isoformat(),
        "check_out": check_out.isoformat(),
        "available": result["available"],
        "conflict": conflict.to_dict() if conflict else None,
        "minimum_stay_nights": result["minimum_stay_nights"],
        "meets_minimum_stay": result["meets_minimum_stay"],
        **result["quote"].to_dict(),
    }


@router.get("/{property_id}/blocked-dates")
def get_blocked_dates(
    property_id: str = Path(...),
    from_date: date | None = Query(None, alias="from"),
    to_date: date | None = Query(None, alias="to"),
    user: CurrentUser = Depends(get_current_user),
) -> list[dict]:
    rows = blocked_dates.list_blocked_dates(property_id, start=from_date, end=to_date)
    return [
        {"id": str(row["id"]), "date": row["date"].isoformat(), "reason": row["reason"]}
        for row in rows
    ]


@router.post("/{property_id}/blocked-dates", status_code=201)
def post_blocked_dates(
    body: BlockDatesBody,
    property_id: str = Path(...),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Block the inclusive range ``[start, end]`` (owner only)."""
    try:
        days = blocked_dates.block_dates(
            property_id,
            owner_id=user.id,
            start=body.start,
            end=body.end,
            reason=body.reason,
        )
    except ReservationError as exc:
        raise to_http(exc)
    return {"property_id": property_id, "blocked_dates": _iso(days)}


@router.delete("/{property_id}/blocked-dates/{day}", status_code=204)
def delete_blocked_date(
    property_id: str = Path(...),
    day: date = Path(...),
    user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        removed = blocked_dates.unblock_date(property_id, owner_id=user.id, day=day)
    except ReservationError as exc:
        raise to_http(exc)
    if not removed:
        raise HTTPException(status_code=404, detail={"code": "blocked_date_not_found"})
    return Response(status_code=204)


@router.delete("/{property_id}/blocked-dates")
def delete_all_blocked_dates(
    property_id: str = Path(...),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    try:
        removed = blocked_dates.unblock_all(property_id, owner_id=user.id)
    except ReservationError as exc:
        raise to_http(exc)
    return {"property_id": property_id, "removed": removed}
