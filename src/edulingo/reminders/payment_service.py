"""Monthly tuition payment reminders.

Runs at the configured hours (09:00 and 20:00 school time by default).
Each enrollment is processed independently:
1. Evaluate the payment cycle for today
2. Claim the reminder slot (``payment:<enrollment>:<date>:<hour>``), so an
   overlapping run of the same slot sends nothing
3. Store the new payment status and due date
4. Email/SMS the student and the linked parent, concurrently
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edulingo.config import get_settings
from edulingo.db.dialect import upsert
from edulingo.db.models import GroupStudent, ParentStudent, PaymentReminder, User
from edulingo.messaging.email import EmailService, get_email_service
from edulingo.messaging.sms import SmsService, get_sms_service
from edulingo.reminders.cycle import OVERDUE, evaluate_cycle, reminder_key
from edulingo.reminders.dispatch import Recipient, deliver_all
from edulingo.reminders.messages import format_amount, payment_message
from edulingo.time_utils import school_now

logger = logging.getLogger(__name__)


def payment_recipients(student: User, parent: User | None) -> list[Recipient]:
    """Student (SMS only with a phone on file) plus the linked parent."""
    recipients = [
        Recipient(
            user_id=student.id,
            name=student.full_name,
            email=student.email,
            phone=student.phone_number if student.has_phone and student.phone_number else None,
        )
    ]
    if parent is not None:
        recipients.append(
            Recipient(user_id=parent.id, name=parent.full_name, email=parent.email, phone=parent.phone_number or None)
        )
    return recipients


async def get_linked_parent(db: AsyncSession, student_id: int) -> User | None:
    result = await db.execute(
        select(ParentStudent)
        .where(ParentStudent.student_id == student_id, ParentStudent.is_linked.is_(True))
        .order_by(ParentStudent.id)
        .limit(1)
    )
    link = result.scalar_one_or_none()
    return link.parent if link else None


async def run_payment_reminders(
    db: AsyncSession,
    now: datetime | None = None,
    email_service: EmailService | None = None,
    sms_service: SmsService | None = None,
) -> dict:
    """Process every enrollment with a payment amount and a course start date."""
    settings = get_settings()
    now = now or school_now()
    hours = settings.payment_reminder_hours

    if now.hour not in hours:
        return {
            "success": True,
            "message": f"Not a reminder time. Payment reminders are sent at hours {hours} only.",
            "current_hour": now.hour,
            "reminders_sent": [],
            "errors": [],
        }

    email_service = email_service or get_email_service()
    sms_service = sms_service or get_sms_service()

    result = await db.execute(
        select(GroupStudent.id)
        .where(
            GroupStudent.monthly_payment_amount.is_not(None),
            GroupStudent.course_start_date.is_not(None),
        )
        .order_by(GroupStudent.id)
    )
    enrollment_ids = list(result.scalars().all())

    reminders_sent: list[dict] = []
    errors: list[dict] = []
    for enrollment_id in enrollment_ids:
        try:
            sent = await _process_enrollment(db, enrollment_id, now, email_service, sms_service, errors)
        except Exception as e:
            logger.exception("Error processing payment reminder for group_student %s", enrollment_id)
            await db.rollback()
            errors.append({"group_student_id": enrollment_id, "error": str(e) or "Unknown error"})
            continue
        if sent is not None:
            reminders_sent.append(sent)

    logger.info("Payment reminders: %d sent, %d errors", len(reminders_sent), len(errors))
    return {
        "success": True,
        "message": f"Processed {len(reminders_sent)} payment reminders",
        "reminders_sent": reminders_sent,
        "errors": errors,
    }


async def _process_enrollment(
    db: AsyncSession,
    enrollment_id: int,
    now: datetime,
    email_service: EmailService,
    sms_service: SmsService,
    errors: list[dict],
) -> dict | None:
    settings = get_settings()
    today = now.date()

    enrollment = await db.get(GroupStudent, enrollment_id, populate_existing=True)
    if enrollment is None:
        return None

    decision = evaluate_cycle(
        enrollment.payment_status,
        enrollment.last_payment_date,
        enrollment.course_start_date,
        enrollment.payment_due_date,
        today,
    )
    if not decision.sends_reminder:
        return None

    student = enrollment.student
    group = enrollment.group
    parent = await get_linked_parent(db, student.id)
    recipients = payment_recipients(student, parent)

    key = reminder_key("payment", enrollment.id, today, now.hour)
    claim = (
        upsert(db, PaymentReminder)
        .values(
            group_student_id=enrollment.id,
            student_id=student.id,
            parent_id=parent.id if parent else None,
            reminder_type=decision.action,
            due_date=decision.due_date,
            sent_to_email=any(r.email for r in recipients),
            sent_to_sms=any(r.phone for r in recipients),
            idempotency_key=key,
            created_at=datetime.now(timezone.utc),
        )
        .on_conflict_do_nothing(index_elements=["idempotency_key"])
        .returning(PaymentReminder.id)
    )
    if (await db.execute(claim)).scalar_one_or_none() is None:
        logger.info("Payment reminder slot %s already claimed", key)
        await db.rollback()
        return None

    enrollment.payment_status = decision.status
    enrollment.payment_due_date = decision.due_date

    overdue = decision.action == OVERDUE
    subject, content = payment_message(
        group.name, enrollment.monthly_payment_amount, decision.due_date, overdue, settings.currency,
    )
    sent = {
        "group_student_id": enrollment.id,
        "student": student.full_name,
        "group": group.name,
        "amount": format_amount(enrollment.monthly_payment_amount),
        "due_date": decision.due_date.isoformat() if decision.due_date else None,
        "status": decision.action,
        "recipients": len(recipients),
    }
    await db.commit()

    errors.extend(
        await deliver_all(
            recipients,
            subject,
            content,
            settings.payment_sender_name,
            email_service,
            sms_service,
            platform_url=settings.site_url,
        )
    )
    return sent
