"""Settings CRUD - singleton row, created lazily with defaults"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.database import db_operation
from app.core.logging_utils import log_business_event
from app.core.exceptions import ValidationError
from app.core.validations import time_to_minutes
from app.turf.models.settings import Settings
from app.turf.schemas.settings import SettingsUpdate

logger = logging.getLogger(__name__)

SETTINGS_ID = 1


@db_operation
async def get_settings(session: AsyncSession) -> Settings:
    """Return the settings row, inserting the defaults on first read (no commit)"""
    result = await session.execute(select(Settings).where(Settings.id == SETTINGS_ID))
    settings = result.scalar_one_or_none()
    if settings:
        return settings

    try:
        async with session.begin_nested():
            settings = Settings(id=SETTINGS_ID)
            session.add(settings)
        logger.info("Default settings created")
        return settings
    except IntegrityError:
        # Another request created it first
        result = await session.execute(select(Settings).where(Settings.id == SETTINGS_ID))
        return result.scalar_one()


async def get_weekend_days(session: AsyncSession) -> list:
    settings = await get_settings(session)
    return list(settings.weekend_days or [])


@db_operation
async def update_settings(session: AsyncSession, data: SettingsUpdate) -> Settings:
    settings = await get_settings(session)
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)

    if "weekend_days" in update_data:
        update_data["weekend_days"] = [day.value for day in data.weekend_days]

    opening = update_data.get("opening_time", settings.opening_time)
    closing = update_data.get("closing_time", settings.closing_time)
    if time_to_minutes(closing) <= time_to_minutes(opening):
        raise ValidationError(
            "Closing time must be after opening time",
            {"opening_time": opening, "closing_time": closing},
        )

    for field, value in update_data.items():
        setattr(settings, field, value)

    await session.commit()
    await session.refresh(settings)

    log_business_event("settings_updated", "settings", settings.id, update_data)
    return settings
