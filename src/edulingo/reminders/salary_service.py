"""Monthly teacher salary reminders for the main teacher.

Runs once a day at the configured hour (12:00 school time by default) and
follows the same cycle rules as payment reminders. Besides email and SMS,
the main teacher gets an in-app ``salary_reminder`` notification.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edulingo.config import get_settings
from edulingo.db.dialect import upsert
from edulingo.db.models import SalaryReminder, User
from edulingo.messaging.email import EmailService, get_email_service
from edulingo.messaging.sms import SmsService, get_sms_service
from edulingo.notifications.service import create_notification
from edulingo.reminders.cycle import OVERDUE, evaluate_cycle, reminder_key
from edulingo.reminders.dispatch import Recipient, deliver_all
from edulingo.reminders.messages import format_amount, salary_message, sms_text
from edulingo.time_utils import school_now

logger = logging.getLogger(__name__)


async def get_main_teacher(db: AsyncSession) -> User | None:
    result = await db.execute(
        select(User).where(User.role == "main_teacher").order_by(User.id).limit(1)
    )
    return result.scalar_one_or_none()


async def run_salary_reminders(
    db: AsyncSession,
    now: datetime | None = None,
    email_service: EmailService | None = None,
    sms_service: SmsService | None = None,
    redis: object | None = None,
) -> dict:
    """Process every teacher with a salary amount and an employment start date."""
    settings = get_settings()
    now = now or school_now()
    hours = settings.salary_reminder_hours

    if now.hour not in hours:
        return {
            "success": True,
            "message": f"Not a reminder time. Salary reminders are sent at hours {hours} only.",
            "current_hour": now.hour,
            "reminders_sent": [],
            "errors": [],
        }

    main_teacher = await get_main_teacher(db)
    if main_teacher is None:
        return {"success": True, "message": "No main teacher found", "reminders_sent": [], "errors": []}
    recipient = Recipient(
        user_id=main_teacher.id,
        name=main_teacher.full_name,
        email=main_teacher.email,
        phone=main_teacher.phone_number or None,
    )

    email_service = email_service or get_email_service()
    sms_service = sms_service or get_sms_service()

    result = await db.execute(
        select(User.id)
        .where(
            User.role == "teacher",
            User.salary_amount.is_not(None),
            User.employment_start_date.is_not(None),
        )
        .order_by(User.id)
    )
    teacher_ids = list(result.scalars().all())

    reminders_sent: list[dict] = []
    errors: list[dict] = []
    for teacher_id in teacher_ids:
        try:
            sent = await _process_teacher(
                db, teacher_id, recipient, now, email_service, sms_service, redis, errors,
            )
        except Exception as e:
            logger.exception("Error processing salary reminder for teacher %s", teacher_id)
            await db.rollback()
            errors.append({"teacher_id": teacher_id, "error": str(e) or "Unknown error"})
            continue
        if sent is not None:
            reminders_sent.append(sent)

    logger.info("Salary reminders: %d sent, %d errors", len(reminders_sent), len(errors))
    return {
        "success": True,
        "message": f"Processed {len(reminders_sent)} salary reminders",
        "reminders_sent": reminders_sent,
        "errors": errors,
    }


async def _process_teacher(
    db: AsyncSession,
    teacher_id: int,
    recipient: Recipient,
    now: datetime,
    email_service: EmailService,
    sms_service: SmsService,
    redis: object | None,
    errors: list[dict],
) -> dict | None:
    settings = get_settings()
    today = now.date()

    teacher = await db.get(User, teacher_id, populate_existing=True)
    if teacher is None:
        return None

    decision = evaluate_cycle(
        teacher.salary_status,
        teacher.last_salary_date,
        teacher.employment_start_date,
        teacher.salary_due_date,
        today,
    )
    if not decision.sends_reminder:
        return None

    key = reminder_key("salary", teacher.id, today, now.hour)
    claim = (
        upsert(db, SalaryReminder)
        .values(
            teacher_id=teacher.id,
            recipient_id=recipient.user_id,
            reminder_type=decision.action,
            due_date=decision.due_date,
            sent_to_email=bool(recipient.email),
            sent_to_sms=bool(recipient.phone),
            idempotency_key=key,
            created_at=datetime.now(timezone.utc),
        )
        .on_conflict_do_nothing(index_elements=["idempotency_key"])
        .returning(SalaryReminder.id)
    )
    if (await db.execute(claim)).scalar_one_or_none() is None:
        logger.info("Salary reminder slot %s already claimed", key)
        await db.rollback()
        return None

    teacher.salary_status = decision.status
    teacher.salary_due_date = decision.due_date

    subject, content = salary_message(
        recipient.name,
        teacher.full_name,
        teacher.salary_amount,
        decision.due_date,
        decision.action == OVERDUE,
        settings.currency,
    )
    sent = {
        "teacher_id": teacher.id,
        "teacher_name": teacher.full_name,
        "amount": format_amount(teacher.salary_amount),
        "due_date": decision.due_date.isoformat() if decision.due_date else None,
        "reminder_type": decision.action,
    }
    await db.commit()

    errors.extend(
        await deliver_all(
            [recipient],
            subject,
            content,
            settings.platform_sender_name,
            email_service,
            sms_service,
            platform_url=settings.site_url,
            sms_content=sms_text(content),
        )
    )

    try:
        await create_notification(
            db, recipient.user_id, "salary_reminder", subject, content, redis=redis,
        )
        await db.commit()
    except Exception as e:
        logger.warning("Failed to create salary notification for teacher %s", teacher_id, exc_info=True)
        await db.rollback()
        errors.append({"recipient": recipient.user_id, "type": "notification", "error": str(e)})

    return sent
