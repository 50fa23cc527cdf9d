"""Monthly payment/salary cycle decisions."""

from datetime import date

from edulingo.reminders.cycle import (
    MONTHLY,
    OVERDUE,
    PAID,
    PENDING,
    SKIP,
    anchor_day,
    cycle_due_date,
    evaluate_cycle,
    reminder_key,
)

START = date(2026, 1, 15)


class TestAnchorDay:
    def test_last_payment_wins(self):
        assert anchor_day(date(2026, 2, 20), START) == 20

    def test_falls_back_to_start(self):
        assert anchor_day(None, START) == 15

    def test_nothing_known(self):
        assert anchor_day(None, None) is None


class TestCycleDueDate:
    def test_later_this_month(self):
        assert cycle_due_date(20, date(2026, 3, 15)) == date(2026, 3, 20)

    def test_today(self):
        assert cycle_due_date(15, date(2026, 3, 15)) == date(2026, 3, 15)

    def test_passed_rolls_to_next_month(self):
        assert cycle_due_date(10, date(2026, 3, 15)) == date(2026, 4, 10)

    def test_rolls_over_year_end(self):
        assert cycle_due_date(5, date(2026, 12, 20)) == date(2027, 1, 5)

    def test_day_clamped_to_short_month(self):
        assert cycle_due_date(31, date(2026, 2, 10)) == date(2026, 2, 28)
        assert cycle_due_date(31, date(2026, 4, 30)) == date(2026, 4, 30)


class TestEvaluateCycle:
    def test_due_today_sends_monthly(self):
        decision = evaluate_cycle(PENDING, None, START, None, date(2026, 3, 15))
        assert decision.action == MONTHLY
        assert decision.status == PENDING
        assert decision.due_date == date(2026, 3, 15)
        assert decision.sends_reminder

    def test_not_due_skips(self):
        decision = evaluate_cycle(PENDING, None, START, None, date(2026, 3, 14))
        assert decision.action == SKIP
        assert not decision.sends_reminder

    def test_day_after_due_is_overdue(self):
        decision = evaluate_cycle(PENDING, None, START, date(2026, 3, 15), date(2026, 3, 16))
        assert decision.action == OVERDUE
        assert decision.status == OVERDUE
        assert decision.due_date == date(2026, 3, 15)

    def test_overdue_keeps_stored_due_date(self):
        decision = evaluate_cycle(OVERDUE, None, START, date(2026, 3, 15), date(2026, 3, 25))
        assert decision.action == OVERDUE
        assert decision.due_date == date(2026, 3, 15)

    def test_paid_reopens_cycle_on_anchor_day(self):
        decision = evaluate_cycle(PAID, date(2026, 2, 15), START, date(2026, 2, 15), date(2026, 3, 15))
        assert decision.action == MONTHLY
        assert decision.status == PENDING
        assert decision.due_date == date(2026, 3, 15)

    def test_paid_today_stays_paid(self):
        decision = evaluate_cycle(PAID, date(2026, 3, 15), START, None, date(2026, 3, 15))
        assert decision.action == SKIP
        assert decision.status == PAID

    def test_paid_between_anchor_days_skips(self):
        decision = evaluate_cycle(PAID, date(2026, 2, 15), START, None, date(2026, 3, 16))
        assert decision.action == SKIP

    def test_end_of_month_anchor_in_february(self):
        decision = evaluate_cycle(PENDING, None, date(2026, 1, 31), None, date(2026, 2, 28))
        assert decision.action == MONTHLY
        assert decision.due_date == date(2026, 2, 28)

    def test_no_anchor_skips(self):
        decision = evaluate_cycle(PENDING, None, None, None, date(2026, 3, 15))
        assert decision.action == SKIP


def test_reminder_key_names_one_slot():
    assert reminder_key("payment", 7, date(2026, 3, 15), 9) == "payment:7:2026-03-15:9"
    assert reminder_key("payment", 7, date(2026, 3, 15), 20) != reminder_key("payment", 7, date(2026, 3, 15), 9)
