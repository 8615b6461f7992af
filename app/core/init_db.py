import asyncio
import logging
import os

from sqlalchemy import select, func

from app.core.database import async_session, db_manager, engine, Base
from app.core.exceptions import DatabaseError, ConfigurationError

# регистрирует все таблицы в Base.metadata
from app.turf import models  # noqa: F401
from app.turf.models.settings import Settings
from app.turf.crud.settings import get_settings

logger = logging.getLogger(__name__)


async def seed_settings():
    """Создаёт строку Settings со значениями по умолчанию, если её ещё нет"""
    async with async_session() as session:
        try:
            settings = await get_settings(session)
            await session.commit()
            logger.info(
                f"Settings ready: {settings.turf_name} "
                f"{settings.opening_time}-{settings.closing_time}, weekend {settings.weekend_days}"
            )
        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to seed settings: {e}")
            raise DatabaseError(f"Failed to seed settings: {str(e)}")


async def init_database():
    """Таблицы + настройки по умолчанию"""
    try:
        logger.info("Starting database initialization...")

        await db_manager.create_tables()
        logger.info("✅ Database tables created/verified")

        await seed_settings()
        logger.info("✅ Default settings verified")

    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during database initialization: {e}")
        raise DatabaseError(f"Database initialization failed: {str(e)}")


async def verify_database_setup() -> bool:
    async with async_session() as session:
        result = await session.execute(select(func.count(Settings.id)))
        count = result.scalar()

    if count != 1:
        raise DatabaseError(f"Expected exactly one settings row, found {count}")

    logger.info("✅ Database verification passed")
    return True


async def reset_database():
    """Drop + init; only outside production"""
    environment = os.getenv("ENVIRONMENT", "production").lower()
    if environment not in ["development", "dev", "test"]:
        raise ConfigurationError(
            "ENVIRONMENT",
            "Database reset is only allowed in development or test environments",
        )

    logger.warning("🚨 RESETTING DATABASE - ALL DATA WILL BE LOST!")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await init_database()
    logger.info("✅ Database reset completed")


async def sweep_expired():
    from app.turf.services.expiry_sweeper import expiry_sweeper

    completed = await expiry_sweeper.sweep_once()
    logger.info(f"Expired bookings completed: {completed}")


COMMANDS = {
    "init": init_database,
    "verify": verify_database_setup,
    "reset": reset_database,
    "sweep": sweep_expired,
}


if __name__ == "__main__":
    import sys

    from app.core.config import LOG_LEVEL
    from app.core.logging_utils import setup_logging

    setup_logging(LOG_LEVEL, "text")
    command = sys.argv[1] if len(sys.argv) > 1 else "init"
    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print(f"Available commands: {', '.join(COMMANDS)}")
        sys.exit(1)

    async def main():
        try:
            await COMMANDS[command]()
        finally:
            await db_manager.close_connections()

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Cancelled by user")
    except Exception as e:
        logger.error(f"{command} failed: {e}")
        sys.exit(1)
