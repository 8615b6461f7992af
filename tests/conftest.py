import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["EXPIRY_SWEEPER_ENABLED"] = "false"

from datetime import date
from decimal import Decimal

import jwt
import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.database import Base
from app.turf import models  # noqa: F401
from app.turf.models.courts import Court, CourtStatus, SportType
from app.turf.schemas.bookings import BookingCreate

MONDAY = date(2024, 1, 1)
SATURDAY = date(2024, 1, 6)


def make_engine(db_path, begin_statement: str = "BEGIN"):
    """
    aiosqlite engine with SQLAlchemy's documented transaction recipe so that
    SAVEPOINT (begin_nested) works; BEGIN IMMEDIATE serialises writers.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA busy_timeout=10000")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql(begin_statement)

    return engine


def make_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "turf_test.db"


@pytest.fixture
async def engine(db_path):
    engine = make_engine(db_path)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return make_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


async def create_court(
    session_factory,
    name: str = "Court A",
    sport_type: SportType = SportType.football,
    weekday_price: str = "400",
    weekend_price: str = "600",
    status: CourtStatus = CourtStatus.active,
) -> Court:
    async with session_factory() as session:
        court = Court(
            name=name,
            sport_type=sport_type.value,
            weekday_price=Decimal(weekday_price),
            weekend_price=Decimal(weekend_price),
            status=status.value,
        )
        session.add(court)
        await session.commit()
        return court


@pytest.fixture
async def court(session_factory) -> Court:
    return await create_court(session_factory)


def booking_data(court_id: int, **overrides) -> BookingCreate:
    values = {
        "customer_name": "Arjun Mehta",
        "customer_phone": "+91 98765 43210",
        "court_id": court_id,
        "booking_date": MONDAY,
        "start_time": "06:00",
        "end_time": "07:00",
    }
    values.update(overrides)
    return BookingCreate(**values)


def make_token(user_id: int = 1, role: str = "ADMIN") -> str:
    return jwt.encode(
        {"sub": str(user_id), "role": role, "type": "access_token"},
        os.environ["JWT_SECRET_KEY"],
        algorithm="HS256",
    )


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_token(1, 'ADMIN')}"}


@pytest.fixture
def staff_headers():
    return {"Authorization": f"Bearer {make_token(2, 'STAFF')}"}


@pytest.fixture
async def client(session_factory):
    from httpx import ASGITransport, AsyncClient

    from app.core.database import get_session
    from app.main import app

    async def _get_test_session():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _get_test_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
