from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.limits import limiter
from app.core.dependencies import require_admin, require_staff
from app.turf.schemas.settings import SettingsRead, SettingsUpdate
from app.turf.crud.settings import get_settings, update_settings

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("/", response_model=SettingsRead)
@limiter.limit("60/minute")
async def read_settings(
    request: Request,
    current_user: Dict[str, Any] = Depends(require_staff),
    db: AsyncSession = Depends(get_session),
):
    settings = await get_settings(db)
    # первый запрос создаёт строку с настройками по умолчанию
    await db.commit()
    return settings


@router.put("/", response_model=SettingsRead)
@limiter.limit("10/minute")
async def write_settings(
    request: Request,
    body: SettingsUpdate,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    return await update_settings(db, body)
