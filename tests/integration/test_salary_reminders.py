"""Integration tests for the teacher salary reminder run."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from sqlalchemy import select

from edulingo.db.models import Notification, SalaryReminder, User
from edulingo.reminders.salary_service import run_salary_reminders

TZ = ZoneInfo("Asia/Tashkent")


def at(day: int, hour: int = 12) -> datetime:
    return datetime(2026, 3, day, hour, 0, tzinfo=TZ)


@pytest_asyncio.fixture
async def staff(make):
    """Main teacher with a phone and one salaried teacher employed on the 12th."""
    main = await make.user(
        "main_teacher", full_name="Dilnoza Karimova", email="main@example.com", phone_number="+998901112233",
    )
    teacher = await make.user(
        "teacher",
        full_name="Azizbek Abdurakhmonov",
        salary_amount=Decimal("3000000"),
        employment_start_date=date(2025, 6, 12),
    )
    return {"main_id": main.id, "teacher_id": teacher.id}


class TestSalaryReminderRun:
    @pytest.mark.asyncio
    async def test_due_today_reminds_main_teacher(
        self, db_session, staff, email_service, email_provider, sms_service, twilio,
    ):
        result = await run_salary_reminders(db_session, at(12), email_service, sms_service)

        assert result["errors"] == []
        assert result["reminders_sent"] == [{
            "teacher_id": staff["teacher_id"],
            "teacher_name": "Azizbek Abdurakhmonov",
            "amount": "3,000,000",
            "due_date": "2026-03-12",
            "reminder_type": "monthly",
        }]
        assert [m["to"] for m in email_provider.sent] == ["main@example.com"]
        assert email_provider.sent[0]["subject"] == "Salary Reminder - Azizbek Abdurakhmonov"

        teacher = await db_session.get(User, staff["teacher_id"], populate_existing=True)
        assert teacher.salary_due_date == date(2026, 3, 12)
        assert teacher.salary_status == "pending"

    @pytest.mark.asyncio
    async def test_sms_truncated_to_one_segment(self, db_session, staff, email_service, sms_service, twilio):
        await run_salary_reminders(db_session, at(12), email_service, sms_service)

        body = twilio.bodies[0]["Body"]
        prefix = "Message from EduLingo Platform: "
        assert body.startswith(prefix)
        assert body.endswith("...")
        assert len(body) == len(prefix) + 153

    @pytest.mark.asyncio
    async def test_in_app_notification_for_main_teacher(self, db_session, staff, email_service, sms_service):
        await run_salary_reminders(db_session, at(12), email_service, sms_service)

        result = await db_session.execute(select(Notification).where(Notification.user_id == staff["main_id"]))
        notifications = result.scalars().all()
        assert len(notifications) == 1
        assert notifications[0].type == "salary_reminder"
        assert notifications[0].title == "Salary Reminder - Azizbek Abdurakhmonov"

    @pytest.mark.asyncio
    async def test_next_day_overdue(self, db_session, staff, email_service, email_provider, sms_service):
        await run_salary_reminders(db_session, at(12), email_service, sms_service)
        result = await run_salary_reminders(db_session, at(13), email_service, sms_service)

        assert result["reminders_sent"][0]["reminder_type"] == "overdue"
        assert email_provider.sent[-1]["subject"] == "Salary Overdue - Azizbek Abdurakhmonov"
        assert "Due date was 2026-03-12." in email_provider.sent[-1]["text"]

    @pytest.mark.asyncio
    async def test_same_slot_runs_once(self, db_session, staff, email_service, email_provider, sms_service):
        await run_salary_reminders(db_session, at(12), email_service, sms_service)
        again = await run_salary_reminders(db_session, at(12), email_service, sms_service)

        assert again["reminders_sent"] == []
        assert len(email_provider.sent) == 1
        keys = (await db_session.execute(select(SalaryReminder.idempotency_key))).scalars().all()
        assert keys == [f"salary:{staff['teacher_id']}:2026-03-12:12"]

    @pytest.mark.asyncio
    async def test_outside_reminder_hours(self, db_session, staff, email_service, email_provider, sms_service):
        result = await run_salary_reminders(db_session, at(12, hour=9), email_service, sms_service)

        assert result["current_hour"] == 9
        assert email_provider.sent == []


@pytest.mark.asyncio
async def test_no_main_teacher(db_session, make, email_service, email_provider, sms_service):
    await make.user("teacher", salary_amount=Decimal("100"), employment_start_date=date(2025, 6, 12))

    result = await run_salary_reminders(db_session, at(12), email_service, sms_service)

    assert result["message"] == "No main teacher found"
    assert result["reminders_sent"] == []
    assert email_provider.sent == []


@pytest.mark.asyncio
async def test_teacher_without_salary_skipped(db_session, make, email_service, email_provider, sms_service):
    await make.user("main_teacher")
    await make.user("teacher", employment_start_date=date(2025, 6, 12))

    result = await run_salary_reminders(db_session, at(12), email_service, sms_service)

    assert result["reminders_sent"] == []
