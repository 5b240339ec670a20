import os
import tempfile
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import uuid4

import pytest
import pytest_asyncio
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Tests always run against a throwaway SQLite file, never the configured database
_TEST_DB_DIR = tempfile.mkdtemp(prefix="clinic-scheduler-tests-")
TEST_DB_PATH = Path(_TEST_DB_DIR) / "test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ["CLINIC_TIMEZONE"] = "UTC"
os.environ["RESEND_API_KEY"] = ""
os.environ["LOG_FORMAT"] = "console"

from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import insert  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from app.core.clock import FixedClock  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.database import get_db  # noqa: E402
from app.dependencies import (  # noqa: E402
    get_clock,
    get_notification_channel,
    get_provider_service,
)
from app.main import app  # noqa: E402
from app.models import metadata  # noqa: E402
from app.models.providers import providers  # noqa: E402
from app.services.booking_service import BookingService  # noqa: E402
from app.services.provider_service import ProviderService  # noqa: E402
from app.services.slot_calendar import SlotCalendar  # noqa: E402

TEST_DATABASE_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"

# NullPool gives every session its own connection, so concurrent bookings
# really do race on the unique index
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Monday 2024-06-03 08:00 UTC, an hour before the first slot
MONDAY_MORNING = datetime(2024, 6, 3, 8, 0, tzinfo=UTC)

PATIENT_EMAIL = "jane.doe@example.com"


class RecordingChannel:
    """Notification channel that keeps sent messages in memory."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[dict[str, str]] = []

    async def send(self, to_address: str, subject: str, body: str) -> None:
        if self.fail:
            raise RuntimeError("mail server unavailable")
        self.sent.append({"to": to_address, "subject": subject, "body": body})


@pytest_asyncio.fixture
async def db_engine():
    """Create the schema for one test and drop it afterwards."""
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with TestSessionLocal() as session:
        yield session


@pytest.fixture
def clock() -> FixedClock:
    """Clinic clock pinned to Monday morning."""
    return FixedClock(MONDAY_MORNING)


@pytest.fixture
def calendar() -> SlotCalendar:
    """Default 09:00-17:00 half-hour catalog."""
    return SlotCalendar()


@pytest.fixture
def channel() -> RecordingChannel:
    """In-memory email channel."""
    return RecordingChannel()


@pytest.fixture
def provider_service() -> ProviderService:
    """Provider service without a cache."""
    return ProviderService(cache_manager=None)


@pytest.fixture
def ledger(db_session, provider_service, calendar, clock) -> BookingService:
    """Booking ledger bound to the test session."""
    return BookingService(db_session, provider_service, calendar, clock)


async def insert_provider(session: AsyncSession, **overrides) -> dict:
    """Insert a provider row directly and return it."""
    now = datetime.now(UTC)
    values = {
        "id": uuid4(),
        "name": "Dr. Sarah Johnson",
        "specialization": "Cardiology",
        "email": f"{uuid4().hex}@clinic.example",
        "availability": ["Mon", "Wed", "Fri"],
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    await session.execute(insert(providers).values(**values))
    await session.commit()
    return values


@pytest_asyncio.fixture
async def provider(db_session) -> dict:
    """Cardiologist working Monday, Wednesday and Friday."""
    return await insert_provider(db_session)


@pytest.fixture
def make_provider(db_session):
    """Factory for additional providers."""

    async def _make(**overrides) -> dict:
        return await insert_provider(db_session, **overrides)

    return _make


@pytest.fixture
def booking_payload(provider) -> dict:
    """Valid booking request for Monday 10:00 UTC."""
    return {
        "provider_id": str(provider["id"]),
        "scheduled_at": "2024-06-03T10:00:00Z",
        "patient_name": "Jane Doe",
        "patient_email": PATIENT_EMAIL,
        "patient_phone": "+1 555-123-4567",
        "reason": "Annual checkup",
    }


@pytest_asyncio.fixture
async def client(db_engine, clock, channel) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with TestSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notification_channel] = lambda: channel
    app.dependency_overrides[get_provider_service] = lambda: ProviderService(cache_manager=None)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def _headers(**claims) -> dict:
    token = create_access_token(data=claims, expires_delta=timedelta(minutes=30))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def patient_headers() -> dict:
    """Authentication headers for the booking patient."""
    return _headers(sub="patient-1", role="patient", email=PATIENT_EMAIL)


@pytest.fixture
def other_patient_headers() -> dict:
    """Authentication headers for an unrelated patient."""
    return _headers(sub="patient-2", role="patient", email="someone.else@example.com")


@pytest.fixture
def provider_headers() -> dict:
    """Authentication headers for clinic staff."""
    return _headers(sub="provider-1", role="provider")


@pytest.fixture
def admin_headers() -> dict:
    """Authentication headers for an administrator."""
    return _headers(sub="admin-1", role="admin")
