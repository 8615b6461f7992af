from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status, Request, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.limits import limiter
from app.core.dependencies import require_staff
from app.turf.models.recurring_bookings import RecurringStatus
from app.turf.schemas.recurring import (
    RecurringRuleCreate,
    RecurringRuleUpdate,
    RecurringStatusUpdate,
    RecurringRuleRead,
    RecurringRuleResponse,
    RecurringRuleListResponse,
    GenerationReport,
)
from app.turf.crud.recurring import (
    get_rule_by_id,
    get_recurring_rules,
    create_recurring_rule,
    update_recurring_rule,
    set_recurring_status,
    delete_recurring_rule,
)

router = APIRouter(prefix="/recurring-bookings", tags=["Recurring Bookings"])


def _report_message(report: Dict[str, Any]) -> str:
    message = f"Created {report['success']} bookings"
    if report["failed"]:
        message += f", {report['failed']} dates skipped"
    return message


@router.post("/", response_model=RecurringRuleResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def create_rule(
    request: Request,
    rule: RecurringRuleCreate,
    current_user: Dict[str, Any] = Depends(require_staff),
    db: AsyncSession = Depends(get_session),
):
    """
    Create a recurring rule and generate its bookings right away.

    - WEEKLY needs **days_of_week** (MON..SUN), MONTHLY needs **fixed_date** (1-31)
    - without **end_date** bookings are generated for the default window
    - dates that conflict are skipped and listed in **report.conflicts**
    - 400 when the rule yields no dates, 409 when every date is taken
    """
    db_rule, report = await create_recurring_rule(db, rule, current_user["id"])
    return RecurringRuleResponse(
        rule=RecurringRuleRead.model_validate(db_rule),
        report=GenerationReport(**report),
        message=_report_message(report),
    )


@router.get("/", response_model=RecurringRuleListResponse)
@limiter.limit("60/minute")
async def list_rules(
    request: Request,
    rule_status: Optional[RecurringStatus] = Query(None, alias="status"),
    current_user: Dict[str, Any] = Depends(require_staff),
    db: AsyncSession = Depends(get_session),
):
    rules = await get_recurring_rules(db, rule_status.value if rule_status else None)
    return RecurringRuleListResponse(
        rules=[RecurringRuleRead.model_validate(rule) for rule in rules],
        total=len(rules),
    )


@router.get("/{rule_id}", response_model=RecurringRuleRead)
@limiter.limit("60/minute")
async def get_rule(
    request: Request,
    rule_id: int = Path(..., gt=0),
    current_user: Dict[str, Any] = Depends(require_staff),
    db: AsyncSession = Depends(get_session),
):
    return await get_rule_by_id(db, rule_id)


@router.put("/{rule_id}", response_model=RecurringRuleResponse)
@limiter.limit("10/minute")
async def update_rule(
    request: Request,
    rule: RecurringRuleUpdate,
    rule_id: int = Path(..., gt=0),
    current_user: Dict[str, Any] = Depends(require_staff),
    db: AsyncSession = Depends(get_session),
):
    """Replace the rule; its future BOOKED bookings are rebuilt from today"""
    db_rule, report = await update_recurring_rule(db, rule_id, rule)
    return RecurringRuleResponse(
        rule=RecurringRuleRead.model_validate(db_rule),
        report=GenerationReport(**report),
        message=_report_message(report),
    )


@router.patch("/{rule_id}/status", response_model=RecurringRuleRead)
@limiter.limit("20/minute")
async def change_rule_status(
    request: Request,
    body: RecurringStatusUpdate,
    rule_id: int = Path(..., gt=0),
    current_user: Dict[str, Any] = Depends(require_staff),
    db: AsyncSession = Depends(get_session),
):
    return await set_recurring_status(db, rule_id, body.status)


@router.delete("/{rule_id}")
@limiter.limit("10/minute")
async def delete_rule(
    request: Request,
    rule_id: int = Path(..., gt=0),
    current_user: Dict[str, Any] = Depends(require_staff),
    db: AsyncSession = Depends(get_session),
):
    removed = await delete_recurring_rule(db, rule_id)
    return {
        "success": True,
        "message": "Recurring rule and all associated bookings deleted successfully",
        "deleted_bookings": removed,
    }
