"""Integration tests for student performance and at-risk screening."""

from __future__ import annotations

import pytest

from edulingo.analytics.performance import calculate_student_performance, identify_at_risk_students


class TestStudentPerformance:
    @pytest.mark.asyncio
    async def test_summary(self, db_session, make):
        student = await make.user()
        group = await make.group()
        essay = await make.assignment(group, "Essay")
        await make.assignment(group, "Quiz")
        await make.grade(student, 80, group, essay)
        await make.grade(student, 90, group)
        await make.attendance(student, ["present", "late", "excused", "absent"], group)

        perf = await calculate_student_performance(db_session, student.id, group.id)

        assert perf["average_grade"] == 85.0
        assert perf["grades_count"] == 2
        assert perf["assignments_total"] == 2
        assert perf["assignments_submitted"] == 1
        assert perf["assignment_completion_rate"] == 50.0
        assert perf["classes_total"] == 4
        assert perf["classes_attended"] == 3
        assert perf["attendance_rate"] == 75.0

    @pytest.mark.asyncio
    async def test_other_groups_not_counted(self, db_session, make):
        student = await make.user()
        group = await make.group("A")
        other = await make.group("B")
        await make.grade(student, 40, other)
        await make.attendance(student, ["absent"], other)

        perf = await calculate_student_performance(db_session, student.id, group.id)

        assert perf["grades_count"] == 0
        assert perf["average_grade"] == 0.0
        assert perf["attendance_rate"] == 0.0
        assert perf["assignment_completion_rate"] == 0.0


@pytest.mark.asyncio
async def test_at_risk_students_sorted_by_score(db_session, make):
    group = await make.group()
    assignment = await make.assignment(group)

    strong = await make.user(full_name="Strong")
    await make.enroll(group, strong)
    await make.grade(strong, 95, group, assignment)
    await make.attendance(strong, ["present"] * 4, group)

    struggling = await make.user(full_name="Struggling")
    await make.enroll(group, struggling)
    await make.grade(struggling, 50, group, assignment)
    await make.attendance(struggling, ["present"] * 4, group)

    absent = await make.user(full_name="Absent")
    await make.enroll(group, absent)
    await make.attendance(absent, ["absent"] * 4, group)

    at_risk = await identify_at_risk_students(db_session, group.id)

    assert [r["student_id"] for r in at_risk] == [absent.id, struggling.id]
    assert at_risk[0]["risk_level"] == "critical"
    assert at_risk[1] == {
        "student_id": struggling.id,
        "risk_level": "medium",
        "risk_score": 30,
        "factors": ["Low grades"],
    }
