"""Shared test fixtures.

The suite runs on SQLite (aiosqlite) with a fresh database file per test.
Redis is not initialized, so rate limiting and realtime publishing are off
and every outbound channel is unconfigured unless a test injects one.
"""

from __future__ import annotations

import os

os.environ["EDU_REDIS_URL"] = ""
os.environ["EDU_CRON_SECRET"] = ""
os.environ["EDU_INTERNAL_API_TOKEN"] = ""
os.environ["EDU_RESEND_API_KEY"] = ""
os.environ["EDU_TWILIO_ACCOUNT_SID"] = ""
os.environ["EDU_VAPID_PRIVATE_KEY"] = ""

from collections.abc import AsyncGenerator  # noqa: E402
from datetime import date, datetime, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import BigInteger  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402
from sqlalchemy.ext.compiler import compiles  # noqa: E402

from edulingo.config import get_settings  # noqa: E402
from edulingo.database import close_db, get_engine, get_session_factory, init_db  # noqa: E402
from edulingo.db.base import Base  # noqa: E402
from edulingo.db.models import (  # noqa: E402
    Assignment,
    AssignmentFile,
    Attendance,
    Grade,
    Group,
    GroupStudent,
    ParentStudent,
    User,
)
from edulingo.main import create_app  # noqa: E402
from edulingo.messaging.email import BaseEmailProvider, EmailService, reset_email_service  # noqa: E402
from edulingo.messaging.sms import SmsService, reset_sms_service  # noqa: E402
from edulingo.notifications.push import reset_push_service  # noqa: E402


@compiles(BigInteger, "sqlite")
def _bigint_as_integer(_type, _compiler, **_kw) -> str:
    """SQLite only autoincrements ``INTEGER PRIMARY KEY`` columns."""
    return "INTEGER"


@pytest.fixture(autouse=True)
def _fresh_singletons():
    get_settings.cache_clear()
    reset_email_service()
    reset_sms_service()
    reset_push_service()
    yield
    get_settings.cache_clear()
    reset_email_service()
    reset_sms_service()
    reset_push_service()


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Initialize the engine on a fresh SQLite file with all tables created."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'edulingo.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield get_engine()
    await close_db()


@pytest_asyncio.fixture
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for setup and assertions."""
    async with get_session_factory()() as session:
        yield session


@pytest_asyncio.fixture
async def client(engine) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client bound to the test database."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Data builders
# ---------------------------------------------------------------------------


class Factory:
    """Insert platform rows the engine reads (users, groups, activity)."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._n = 0

    async def _add(self, obj):
        self.db.add(obj)
        await self.db.commit()
        return obj

    async def user(self, role: str = "student", **kwargs) -> User:
        self._n += 1
        kwargs.setdefault("email", f"{role}{self._n}@example.com")
        kwargs.setdefault("full_name", f"{role.title()} {self._n}")
        return await self._add(User(role=role, **kwargs))

    async def group(self, name: str = "IELTS A", teacher: User | None = None) -> Group:
        return await self._add(Group(name=name, teacher_id=teacher.id if teacher else None))

    async def enroll(self, group: Group, student: User, **kwargs) -> GroupStudent:
        return await self._add(GroupStudent(group_id=group.id, student_id=student.id, **kwargs))

    async def link_parent(self, parent: User, student: User, is_linked: bool = True) -> ParentStudent:
        return await self._add(ParentStudent(parent_id=parent.id, student_id=student.id, is_linked=is_linked))

    async def assignment(self, group: Group, title: str = "Essay") -> Assignment:
        return await self._add(Assignment(group_id=group.id, title=title))

    async def submission(self, student: User, assignment: Assignment | None = None) -> AssignmentFile:
        return await self._add(AssignmentFile(
            uploaded_by=student.id,
            assignment_id=assignment.id if assignment else None,
            file_name="work.pdf",
        ))

    async def attendance(self, student: User, statuses: list[str], group: Group | None = None) -> None:
        """Attendance records, oldest first, one minute apart."""
        for i, status in enumerate(statuses):
            self.db.add(Attendance(
                student_id=student.id,
                group_id=group.id if group else None,
                status=status,
                created_at=datetime(2026, 1, 1, 9, i, tzinfo=timezone.utc),
            ))
        await self.db.commit()

    async def grade(
        self,
        student: User,
        score: float,
        group: Group | None = None,
        assignment: Assignment | None = None,
    ) -> Grade:
        return await self._add(Grade(
            student_id=student.id,
            group_id=group.id if group else None,
            assignment_id=assignment.id if assignment else None,
            score=Decimal(str(score)),
        ))


@pytest_asyncio.fixture
async def make(db_session: AsyncSession) -> Factory:
    return Factory(db_session)


# ---------------------------------------------------------------------------
# Outbound channel fakes
# ---------------------------------------------------------------------------


class RecordingEmailProvider(BaseEmailProvider):
    """Email provider that keeps sent messages in memory."""

    name = "recording"
    requirement = "nothing"

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.sent: list[dict] = []
        self.fail_for = fail_for or set()

    @property
    def is_configured(self) -> bool:
        return True

    async def send(self, to_email: str, subject: str, html_body: str, text_body: str) -> str | None:
        if to_email in self.fail_for:
            msg = "mailbox unavailable"
            raise RuntimeError(msg)
        self.sent.append({"to": to_email, "subject": subject, "html": html_body, "text": text_body})
        return f"email-{len(self.sent)}"


class TwilioRecorder:
    """httpx MockTransport handler that answers like the Twilio Messages API."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(201, json={"sid": f"SM{len(self.requests)}"})

    @property
    def bodies(self) -> list[dict[str, str]]:
        return [dict(httpx.QueryParams(r.content.decode())) for r in self.requests]


@pytest.fixture
def email_provider() -> RecordingEmailProvider:
    return RecordingEmailProvider()


@pytest.fixture
def email_service(email_provider: RecordingEmailProvider) -> EmailService:
    return EmailService(provider=email_provider, redis=None)


@pytest.fixture
def twilio() -> TwilioRecorder:
    return TwilioRecorder()


@pytest.fixture
def sms_service(twilio: TwilioRecorder) -> SmsService:
    return SmsService(
        account_sid="AC123",
        auth_token="secret",
        from_number="+15005550006",
        transport=httpx.MockTransport(twilio),
    )


@pytest.fixture
def today() -> date:
    return date(2026, 3, 15)
