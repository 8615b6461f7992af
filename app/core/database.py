import asyncio
import logging
from contextlib import asynccontextmanager
from functools import wraps
from typing import Callable, TypeVar, Any, AsyncGenerator, AsyncIterator, Optional
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import text
from sqlalchemy.exc import (
    SQLAlchemyError,
    OperationalError,
    DisconnectionError,
    TimeoutError,
)
from asyncpg.exceptions import (
    ConnectionFailureError,
    ConnectionDoesNotExistError,
)

from .config import (
    DATABASE_URL,
    DB_RETRY_ATTEMPTS,
    DB_RETRY_DELAY,
    DB_RETRY_BACKOFF_FACTOR,
)
from .exceptions import DatabaseConnectionError, DatabaseTimeoutError

logger = logging.getLogger(__name__)

POOL_TIMEOUT_SECONDS = 30


def _engine_options(url: str) -> dict:
    """Настройки пула только для PostgreSQL; SQLite (локально) их не принимает"""
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": 20,
        "max_overflow": 10,
        "pool_timeout": POOL_TIMEOUT_SECONDS,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
    }


engine = create_async_engine(DATABASE_URL, echo=False, **_engine_options(DATABASE_URL))

# expire_on_commit=False: ORM-объекты читаются после commit при сборке ответа
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()

F = TypeVar("F", bound=Callable[..., Any])

# Повторяются только сбои соединения; конфликты слотов и ошибки валидации никогда
RETRYABLE_EXCEPTIONS = (
    OperationalError,
    DisconnectionError,
    TimeoutError,
    ConnectionFailureError,
    ConnectionDoesNotExistError,
)
CONNECTION_EXCEPTIONS = (
    ConnectionFailureError,
    ConnectionDoesNotExistError,
    DisconnectionError,
)


def db_retry(
    max_attempts: int = None,
    delay: float = None,
    backoff_factor: float = None,
    exceptions: tuple = RETRYABLE_EXCEPTIONS,
) -> Callable[[F], F]:
    """
    Повтор операции при сбое соединения с экспоненциальной задержкой.

    После последней попытки сбой соединения становится DatabaseConnectionError,
    таймаут становится DatabaseTimeoutError, остальное пробрасывается как есть.
    """
    attempts = max_attempts or DB_RETRY_ATTEMPTS
    first_delay = DB_RETRY_DELAY if delay is None else delay
    factor = DB_RETRY_BACKOFF_FACTOR if backoff_factor is None else backoff_factor

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            wait = first_delay
            for attempt in range(1, attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == attempts:
                        logger.error(
                            f"{func.__name__} failed after {attempts} attempts: {e}",
                            extra={"function": func.__name__, "exception_type": type(e).__name__},
                        )
                        if isinstance(e, CONNECTION_EXCEPTIONS):
                            raise DatabaseConnectionError(
                                f"Database connection failed after {attempts} attempts"
                            ) from e
                        if isinstance(e, TimeoutError):
                            raise DatabaseTimeoutError(func.__name__, POOL_TIMEOUT_SECONDS) from e
                        raise

                    logger.warning(
                        f"{func.__name__} failed (attempt {attempt}/{attempts}), retrying in {wait}s",
                        extra={"function": func.__name__, "exception_type": type(e).__name__},
                    )
                    await asyncio.sleep(wait)
                    wait *= factor

        return wrapper

    return decorator


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency: сессия на запрос.

    CRUD-функции коммитят сами; всё, что осталось незакоммиченным после
    ошибки, откатывается здесь.
    """
    async with async_session() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Session rolled back: {type(e).__name__}: {e}")
            raise


@asynccontextmanager
async def transaction_scope(
    session: Optional[AsyncSession] = None,
    session_factory: Optional[async_sessionmaker] = None,
) -> AsyncIterator[AsyncSession]:
    """
    Yield a session that is inside a transaction.

    With an external ``session`` the caller owns the boundary: it is yielded
    as-is and never committed or rolled back here. Without one, a session is
    opened from ``session_factory`` (the module factory by default), committed
    when the block exits normally and rolled back when it raises.
    """
    if session is not None:
        yield session
        return

    factory = session_factory or async_session
    async with factory() as own_session:
        try:
            yield own_session
            await own_session.commit()
        except BaseException:
            await own_session.rollback()
            raise


class DatabaseManager:
    """Создание схемы, проверка соединения и закрытие пула при старте/остановке"""

    @staticmethod
    @db_retry()
    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Database schema ready ({len(Base.metadata.tables)} tables)")

    @staticmethod
    @db_retry()
    async def check_connection():
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except RETRYABLE_EXCEPTIONS:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Database connection check failed: {e}")
            raise DatabaseConnectionError("Database connection check failed") from e
        logger.info("Database connection check successful")
        return True

    @staticmethod
    async def close_connections():
        await engine.dispose()
        logger.info("Database connections closed")


db_manager = DatabaseManager()


def db_operation(func: F) -> F:
    """Логирует CRUD-операцию и ошибки SQLAlchemy в ней (ошибка пробрасывается)"""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        logger.debug(f"db operation started: {func.__name__}")
        try:
            result = await func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(
                f"SQLAlchemy error in {func.__name__}: {e}",
                extra={"operation": func.__name__, "exception_type": type(e).__name__},
            )
            raise
        logger.debug(f"db operation finished: {func.__name__}")
        return result

    return wrapper
