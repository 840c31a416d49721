"""Reservation request endpoints.

The caller's identity comes from the OIDC token: on create it is the
requester, on approve/reject it must be the property owner.
"""

from __future__ import annotations

from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, Field

from lodgely.api.auth import CurrentUser, get_current_user
from lodgely.api.errors import to_http
from lodgely.domain import reservation_requests as lifecycle
from lodgely.domain.errors import ReservationError

router = APIRouter(prefix="/reservation-requests", tags=["reservation-requests"])


class CreateReservationRequestBody(BaseModel):
    property_id: str
    check_in: date | None = None
    check_out: date | None = None
    message: str | None = Field(default=None, max_length=2000)
    share_phone: bool = False
    contact_phone: str | None = None
    guest_count: int = 1


class DecisionBody(BaseModel):
    response_message: str | None = Field(default=None, max_length=2000)


def _serialize(request: lifecycle.ReservationRequest, user: CurrentUser) -> dict:
    # Only the owner sees the guest's shared phone
    return request.to_dict(include_contact=user.id == request.owner_id)


@router.post("", status_code=201)
def create_request(
    body: CreateReservationRequestBody,
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    try:
        request = lifecycle.create_reservation_request(
            property_id=body.property_id,
            requester_id=user.id,
            check_in=body.check_in,
            check_out=body.check_out,
            message=body.message,
            share_phone=body.share_phone,
            contact_phone=body.contact_phone,
            guest_count=body.guest_count,
        )
    except ReservationError as exc:
        raise to_http(exc)
    return _serialize(request, user)


@router.get("")
def list_requests(
    box: Literal["received", "sent"] = Query("received"),
    status: Literal["pending", "approved", "rejected"] | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    user: CurrentUser = Depends(get_current_user),
) -> list[dict]:
    """Requests received as owner (default) or sent as requester, newest first."""
    requests = lifecycle.list_reservation_requests(
        user_id=user.id,
        box=box,
        status=status,
        limit=limit,
    )
    return [_serialize(r, user) for r in requests]


@router.get("/{request_id}")
def get_request(
    request_id: str = Path(..., description="Reservation request UUID"),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    try:
        request = lifecycle.get_reservation_request(request_id, user_id=user.id)
    except ReservationError as exc:
        raise to_http(exc)
    return _serialize(request, user)


@router.post("/{request_id}/actions/approve")
def approve_request(
    body: DecisionBody | None = None,
    request_id: str = Path(..., description="Reservation request UUID"),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Approve a pending request.

    409 booking_conflict when another approval holds the property or the
    dates were taken in the meantime; the request then stays pending.
    """
    try:
        request = lifecycle.approve_reservation_request(
            request_id,
            owner_id=user.id,
            response_message=body.response_message if body else None,
        )
    except ReservationError as exc:
        raise to_http(exc)
    return _serialize(request, user)


@router.post("/{request_id}/actions/reject")
def reject_request(
    body: DecisionBody | None = None,
    request_id: str = Path(..., description="Reservation request UUID"),
    user: CurrentUser = Depends(get_current_user),
) -> dict:
    try:
        request = lifecycle.reject_reservation_request(
            request_id,
            owner_id=user.id,
            response_message=body.response_message if body else None,
        )
    except ReservationError as exc:
        raise to_http(exc)
    return _serialize(request, user)
