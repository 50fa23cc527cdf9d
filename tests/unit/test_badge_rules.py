"""Badge rule predicates over activity snapshots."""

from decimal import Decimal

from edulingo.gamification.badges import (
    BADGE_RULES,
    BADGES,
    RATE_ATTENDANCE_STATUSES,
    ActivitySnapshot,
    badge_notification,
    evaluate_badges,
    get_badge,
)


class TestCatalog:
    def test_ids_unique(self):
        ids = [b["id"] for b in BADGES]
        assert len(ids) == len(set(ids))

    def test_every_rule_has_a_catalog_entry(self):
        for badge_id in BADGE_RULES:
            assert get_badge(badge_id) is not None

    def test_staff_badges_have_no_rule(self):
        assert "early_bird" not in BADGE_RULES
        assert "helper" not in BADGE_RULES
        assert get_badge("helper")["name"] == "Helper"

    def test_unknown_badge(self):
        assert get_badge("nope") is None


class TestEvaluateBadges:
    def test_empty_snapshot_earns_nothing(self):
        assert evaluate_badges(ActivitySnapshot()) == []

    def test_first_submission(self):
        assert evaluate_badges(ActivitySnapshot(submitted_files=1)) == ["first_assignment"]

    def test_fifty_submissions(self):
        earned = evaluate_badges(ActivitySnapshot(submitted_files=50))
        assert earned == ["first_assignment", "assignment_king"]

    def test_week_streak(self):
        assert evaluate_badges(ActivitySnapshot(current_streak=7)) == ["week_warrior"]
        assert evaluate_badges(ActivitySnapshot(current_streak=6)) == []

    def test_month_streak_also_earns_week(self):
        assert evaluate_badges(ActivitySnapshot(current_streak=30)) == ["week_warrior", "month_master"]

    def test_held_badges_excluded(self):
        snapshot = ActivitySnapshot(current_streak=30, submitted_files=1)
        assert evaluate_badges(snapshot, held={"week_warrior", "first_assignment"}) == ["month_master"]

    def test_top_student_at_exactly_ninety(self):
        snapshot = ActivitySnapshot(grade_scores=(Decimal("85"), Decimal("95")))
        assert evaluate_badges(snapshot) == ["top_student"]

    def test_top_student_below_ninety(self):
        assert evaluate_badges(ActivitySnapshot(grade_scores=(89.99,))) == []


class TestPerfectAttendance:
    def test_ten_present_records(self):
        snapshot = ActivitySnapshot(recent_attendance=("present",) * 10)
        assert evaluate_badges(snapshot) == ["perfect_attendance"]

    def test_late_counts_as_attended(self):
        snapshot = ActivitySnapshot(recent_attendance=("late",) + ("present",) * 9)
        assert evaluate_badges(snapshot) == ["perfect_attendance"]

    def test_fewer_than_ten_records(self):
        snapshot = ActivitySnapshot(recent_attendance=("present",) * 9)
        assert evaluate_badges(snapshot) == []

    def test_one_absence_in_window(self):
        snapshot = ActivitySnapshot(recent_attendance=("present",) * 9 + ("absent",))
        assert evaluate_badges(snapshot) == []

    def test_excused_breaks_run_by_default(self):
        snapshot = ActivitySnapshot(recent_attendance=("excused",) + ("present",) * 9)
        assert evaluate_badges(snapshot) == []

    def test_excused_counts_when_enabled(self):
        snapshot = ActivitySnapshot(
            recent_attendance=("excused",) + ("present",) * 9,
            attendance_statuses=RATE_ATTENDANCE_STATUSES,
        )
        assert evaluate_badges(snapshot) == ["perfect_attendance"]


def test_badge_notification_text():
    title, message = badge_notification("week_warrior")
    assert title == "New Badge Earned!"
    assert message == 'Congratulations! You earned the "Week Warrior" badge: 7-day activity streak'
