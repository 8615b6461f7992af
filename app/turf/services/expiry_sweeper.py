import asyncio
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_, update
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.future import select

from app.core.config import EXPIRY_SWEEP_INTERVAL_SECONDS
from app.core.database import async_session
from app.core.logging_utils import error_tracker, log_business_event
from app.turf.models.booking_slots import BookingSlot, SlotStatus
from app.turf.models.bookings import Booking, BookingStatus

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Фоновая задача: завершает брони, время которых уже прошло"""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        interval: int = EXPIRY_SWEEP_INTERVAL_SECONDS,
    ):
        self.session_factory = session_factory or async_session
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    async def sweep_once(self, now: Optional[datetime] = None) -> int:
        """
        Один проход: BOOKED брони прошлых дней и сегодняшние с end_time <= текущего
        времени переводятся в COMPLETED вместе со слотами. Возвращает число броней.
        """
        now = now or datetime.now()
        today = now.date()
        current_time = now.strftime("%H:%M")

        async with self.session_factory() as session:
            try:
                result = await session.execute(
                    select(Booking.id).where(
                        and_(
                            Booking.status == BookingStatus.booked.value,
                            or_(
                                Booking.booking_date < today,
                                and_(
                                    Booking.booking_date == today,
                                    Booking.end_time <= current_time,
                                ),
                            ),
                        )
                    )
                )
                booking_ids = [row[0] for row in result.fetchall()]

                if not booking_ids:
                    await session.rollback()
                    return 0

                await session.execute(
                    update(Booking)
                    .where(Booking.id.in_(booking_ids))
                    .values(status=BookingStatus.completed.value)
                    .execution_options(synchronize_session=False)
                )
                await session.execute(
                    update(BookingSlot)
                    .where(BookingSlot.booking_id.in_(booking_ids))
                    .values(status=SlotStatus.completed.value)
                    .execution_options(synchronize_session=False)
                )
                await session.commit()

            except Exception as e:
                await session.rollback()
                logger.error(f"Expiry sweep failed: {str(e)}", exc_info=True)
                error_tracker.track_error(
                    "ExpirySweepError", str(e), {"now": now.isoformat()}
                )
                raise

        log_business_event(
            "bookings_expired", "booking", None, {"count": len(booking_ids), "ids": booking_ids}
        )
        return len(booking_ids)

    async def _run(self):
        logger.info(f"Expiry sweeper started (every {self.interval}s)")
        while True:
            try:
                await self.sweep_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning(f"Expiry sweep will retry in {self.interval}s")
            await asyncio.sleep(self.interval)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())
        return self._task

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Expiry sweeper stopped")


expiry_sweeper = ExpirySweeper()
