"""Reminder wording. Returns (subject, content) tuples."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

SMS_MAX_LENGTH = 160
SMS_TRUNCATE_AT = 150


def format_amount(amount: Decimal | int | float | None) -> str:
    """Thousands-separated amount; whole amounts without decimals."""
    if amount is None:
        return "0"
    value = Decimal(str(amount))
    if value == value.to_integral_value():
        return f"{int(value):,}"
    return f"{value:,.2f}"


def format_date(d: date | None) -> str:
    return d.isoformat() if d else "-"


def payment_message(
    group_name: str,
    amount: Decimal | None,
    due_date: date | None,
    overdue: bool,
    currency: str = "UZS",
) -> tuple[str, str]:
    amount_text = f"{format_amount(amount)} {currency}"
    if overdue:
        return (
            f"Payment Overdue - {group_name}",
            f"Your monthly payment of {amount_text} for {group_name} is overdue. "
            "Please make payment as soon as possible.",
        )
    return (
        f"Payment Reminder - {group_name}",
        f"Reminder: Your monthly payment of {amount_text} for {group_name} "
        f"is due today ({format_date(due_date)}).",
    )


def salary_message(
    main_teacher_name: str,
    teacher_name: str,
    amount: Decimal | None,
    due_date: date | None,
    overdue: bool,
    currency: str = "UZS",
) -> tuple[str, str]:
    amount_text = f"{format_amount(amount)} {currency}"
    if overdue:
        return (
            f"Salary Overdue - {teacher_name}",
            f"Dear {main_teacher_name},\n\n"
            f"Teacher {teacher_name}'s monthly salary of {amount_text} is overdue. "
            f"Please process payment as soon as possible. Due date was {format_date(due_date)}.",
        )
    return (
        f"Salary Reminder - {teacher_name}",
        f"Dear {main_teacher_name},\n\n"
        f"This is a reminder that teacher {teacher_name}'s monthly salary of {amount_text} "
        f"is due today ({format_date(due_date)}). Please ensure timely payment.",
    )


def sms_text(content: str) -> str:
    """Shorten long content to fit a single SMS segment."""
    if len(content) > SMS_MAX_LENGTH:
        return f"{content[:SMS_TRUNCATE_AT]}..."
    return content
