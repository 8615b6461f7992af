from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status, Request, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.limits import limiter
from app.core.dependencies import require_admin
from app.turf.models.bookings import BookingStatus
from app.turf.models.payments import PaymentStatus
from app.turf.schemas.bookings import (
    BookingCreate,
    BookingUpdate,
    BookingStatusUpdate,
    BookingCreateResponse,
    BookingListResponse,
    BookingDetail,
    AvailabilityRequest,
    AvailabilityResponse,
)
from app.turf.crud.bookings import (
    create_booking,
    get_bookings,
    get_booking_detail,
    update_booking_status,
    update_booking,
    delete_booking,
    to_list_item,
)
from app.turf.services.slot_validation import check_slot_availability

router = APIRouter(prefix="/bookings", tags=["Bookings"])


async def _detail(db: AsyncSession, booking_id: int) -> BookingDetail:
    booking, payment, court_name = await get_booking_detail(db, booking_id)
    return BookingDetail(**to_list_item(booking, payment, court_name).model_dump())


@router.post("/", response_model=BookingCreateResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_new_booking(
    request: Request,
    booking: BookingCreate,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Book a court for a time range on one day.

    Slots are 15 minutes; the range end is exclusive. Returns 409 when any
    slot is already booked, including when a concurrent request wins the slot.
    """
    created = await create_booking(db, booking, current_user["id"])
    return BookingCreateResponse(
        success=True, message="Booking created successfully", booking_id=created.id
    )


@router.post("/check-availability", response_model=AvailabilityResponse)
@limiter.limit("60/minute")
async def check_availability(
    request: Request,
    body: AvailabilityRequest,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    result = await check_slot_availability(
        db,
        body.court_id,
        body.booking_date,
        body.start_time,
        body.end_time,
        exclude_booking_id=body.exclude_booking_id,
    )
    return AvailabilityResponse(**result)


@router.get("/", response_model=BookingListResponse)
@limiter.limit("60/minute")
async def list_bookings(
    request: Request,
    booking_date: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD"),
    court_id: Optional[int] = Query(None, gt=0),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    payment_status: Optional[PaymentStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=100, description="Customer name or phone"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    rows = await get_bookings(
        db,
        booking_date=booking_date,
        court_id=court_id,
        status=booking_status.value if booking_status else None,
        payment_status=payment_status.value if payment_status else None,
        search=search,
    )
    items = [to_list_item(booking, payment, court_name) for booking, payment, court_name in rows]
    return BookingListResponse(bookings=items, total=len(items))


@router.get("/{booking_id}", response_model=BookingDetail)
@limiter.limit("60/minute")
async def get_booking(
    request: Request,
    booking_id: int = Path(..., gt=0),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    return await _detail(db, booking_id)


@router.patch("/{booking_id}/status", response_model=BookingDetail)
@limiter.limit("30/minute")
async def change_booking_status(
    request: Request,
    body: BookingStatusUpdate,
    booking_id: int = Path(..., gt=0),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    await update_booking_status(db, booking_id, body.status)
    return await _detail(db, booking_id)


@router.put("/{booking_id}", response_model=BookingDetail)
@limiter.limit("30/minute")
async def edit_booking(
    request: Request,
    body: BookingUpdate,
    booking_id: int = Path(..., gt=0),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    await update_booking(db, booking_id, body)
    return await _detail(db, booking_id)


@router.delete("/{booking_id}")
@limiter.limit("20/minute")
async def remove_booking(
    request: Request,
    booking_id: int = Path(..., gt=0),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    await delete_booking(db, booking_id)
    return {"success": True, "message": "Booking deleted successfully"}
