from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.limits import limiter
from app.core.dependencies import require_staff
from app.turf.models.payments import PaymentStatus
from app.turf.schemas.payments import (
    PaymentRead,
    PaymentListResponse,
    MarkPaidRequest,
    PaymentModeUpdate,
)
from app.turf.crud.payments import (
    get_payments,
    get_payment,
    mark_payment_paid,
    update_payment_mode,
    to_payment_read,
)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.get("/", response_model=PaymentListResponse)
@limiter.limit("60/minute")
async def list_payments(
    request: Request,
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    court_id: Optional[int] = Query(None, gt=0),
    payment_status: Optional[PaymentStatus] = Query(None),
    current_user: Dict[str, Any] = Depends(require_staff),
    db: AsyncSession = Depends(get_session),
):
    """Payments of bookings that are not cancelled, newest first"""
    rows = await get_payments(
        db,
        date_from=date_from,
        date_to=date_to,
        court_id=court_id,
        payment_status=payment_status.value if payment_status else None,
    )
    payments = [to_payment_read(*row) for row in rows]
    return PaymentListResponse(payments=payments, total=len(payments))


@router.get("/{payment_id}", response_model=PaymentRead)
@limiter.limit("60/minute")
async def get_payment_by_id(
    request: Request,
    payment_id: int = Path(..., gt=0),
    current_user: Dict[str, Any] = Depends(require_staff),
    db: AsyncSession = Depends(get_session),
):
    return to_payment_read(*await get_payment(db, payment_id))


@router.patch("/{payment_id}/mark-paid", response_model=PaymentRead)
@limiter.limit("30/minute")
async def mark_paid(
    request: Request,
    body: Optional[MarkPaidRequest] = None,
    payment_id: int = Path(..., gt=0),
    current_user: Dict[str, Any] = Depends(require_staff),
    db: AsyncSession = Depends(get_session),
):
    body = body or MarkPaidRequest()
    row = await mark_payment_paid(db, payment_id, body.payment_mode, body.payment_notes)
    return to_payment_read(*row)


@router.patch("/{payment_id}/mode", response_model=PaymentRead)
@limiter.limit("30/minute")
async def change_payment_mode(
    request: Request,
    body: PaymentModeUpdate,
    payment_id: int = Path(..., gt=0),
    current_user: Dict[str, Any] = Depends(require_staff),
    db: AsyncSession = Depends(get_session),
):
    return to_payment_read(*await update_payment_mode(db, payment_id, body.payment_mode))
