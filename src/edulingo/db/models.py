"""ORM models for the school platform tables the engine reads and writes."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    false,
    func,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from edulingo.db.base import Base

ROLES = ("main_teacher", "teacher", "student", "parent")
PAYMENT_STATUSES = ("pending", "paid", "overdue")


# ---------------------------------------------------------------------------
# People & groups
# ---------------------------------------------------------------------------


class User(Base):
    """Platform user. Salary columns are only set for teachers."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(128), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    has_phone: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=true(), default=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # --- Salary (teachers) ---
    salary_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    employment_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_salary_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    salary_status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="pending", default="pending")
    salary_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)


class Group(Base):
    """A class group taught by one teacher."""

    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    teacher_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


class GroupStudent(Base):
    """Enrollment of a student in a group, carrying the monthly payment cycle."""

    __tablename__ = "group_students"
    __table_args__ = (
        UniqueConstraint("group_id", "student_id", name="group_students_group_id_student_id_key"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    monthly_payment_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    course_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="pending", default="pending")
    payment_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    student: Mapped[User] = relationship("User", lazy="joined")
    group: Mapped[Group] = relationship("Group", lazy="joined")


class ParentStudent(Base):
    """Parent to student link; only linked rows receive payment reminders."""

    __tablename__ = "parent_student"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    parent_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    is_linked: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false(), default=False)

    parent: Mapped[User] = relationship("User", foreign_keys=[parent_id], lazy="joined")


# ---------------------------------------------------------------------------
# Learning activity
# ---------------------------------------------------------------------------


class Assignment(Base):
    __tablename__ = "assignments"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)


class AssignmentFile(Base):
    """A file a student uploaded as an assignment submission."""

    __tablename__ = "files"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    uploaded_by: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    assignment_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("assignments.id", ondelete="SET NULL"), nullable=True)
    file_name: Mapped[str] = mapped_column(String(256), nullable=False, server_default="", default="")
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Attendance(Base):
    """Attendance mark: present, late, excused or absent."""

    __tablename__ = "attendance"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    group_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("groups.id", ondelete="CASCADE"), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Grade(Base):
    __tablename__ = "grades"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    group_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("groups.id", ondelete="CASCADE"), nullable=True)
    assignment_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("assignments.id", ondelete="SET NULL"), nullable=True)
    score: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())


# ---------------------------------------------------------------------------
# Gamification
# ---------------------------------------------------------------------------


class UserProgress(Base):
    """Denormalized progress, one row per user. Level is cached from total_points."""

    __tablename__ = "user_progress"

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    total_points: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default="0", default=0)
    current_level: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1", default=1)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0", default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0", default=0)
    last_activity_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())


class PointsHistory(Base):
    """Append-only points ledger with optional idempotency key."""

    __tablename__ = "points_history"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    source_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    description: Mapped[str | None] = mapped_column(String(256), nullable=True)
    idempotency_key: Mapped[str | None] = mapped_column(String(256), unique=True, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())


class UserBadge(Base):
    """Badges earned by users. UNIQUE(user_id, badge_id) prevents duplicates."""

    __tablename__ = "user_badges"
    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="user_badges_user_id_badge_id_key"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    badge_id: Mapped[str] = mapped_column(String(64), nullable=False)
    earned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class Notification(Base):
    """Persisted in-app notifications."""

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    action_url: Mapped[str | None] = mapped_column(String(256), nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false(), default=False)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())


class PushSubscription(Base):
    """Browser push endpoint registered by a user."""

    __tablename__ = "push_subscriptions"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    endpoint: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    p256dh_key: Mapped[str] = mapped_column(Text, nullable=False)
    auth_key: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())


# ---------------------------------------------------------------------------
# Reminder audit
# ---------------------------------------------------------------------------


class PaymentReminder(Base):
    """One row per (enrollment, reminder slot); the idempotency key claims the slot."""

    __tablename__ = "payment_reminders"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    group_student_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("group_students.id", ondelete="CASCADE"), nullable=False
    )
    student_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reminder_type: Mapped[str] = mapped_column(String(16), nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    sent_to_email: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false(), default=False)
    sent_to_sms: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false(), default=False)
    idempotency_key: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())


class SalaryReminder(Base):
    __tablename__ = "salary_reminders"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    teacher_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    recipient_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reminder_type: Mapped[str] = mapped_column(String(16), nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    sent_to_email: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false(), default=False)
    sent_to_sms: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false(), default=False)
    idempotency_key: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())
