"""Initial schema: people, groups, learning activity, gamification, notifications, reminders.

The platform owns users, groups and enrollments; they are created here with
IF NOT EXISTS so the engine can run against a fresh database in development
and test environments.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            email VARCHAR(320) UNIQUE NOT NULL,
            full_name VARCHAR(128) NOT NULL,
            role VARCHAR(16) NOT NULL
                CHECK (role IN ('main_teacher', 'teacher', 'student', 'parent')),
            phone_number VARCHAR(32),
            has_phone BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ DEFAULT NOW(),
            salary_amount NUMERIC(14, 2),
            employment_start_date DATE,
            last_salary_date DATE,
            salary_status VARCHAR(16) NOT NULL DEFAULT 'pending'
                CHECK (salary_status IN ('pending', 'paid', 'overdue')),
            salary_due_date DATE
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_users_role ON users(role)")

    # --- Groups & enrollment ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS groups (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(128) NOT NULL,
            teacher_id BIGINT REFERENCES users(id) ON DELETE SET NULL
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS group_students (
            id BIGSERIAL PRIMARY KEY,
            group_id BIGINT NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
            student_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            monthly_payment_amount NUMERIC(14, 2),
            course_start_date DATE,
            last_payment_date DATE,
            payment_status VARCHAR(16) NOT NULL DEFAULT 'pending'
                CHECK (payment_status IN ('pending', 'paid', 'overdue')),
            payment_due_date DATE,
            CONSTRAINT group_students_group_id_student_id_key UNIQUE (group_id, student_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_group_students_student ON group_students(student_id)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS parent_student (
            id BIGSERIAL PRIMARY KEY,
            parent_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            student_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            is_linked BOOLEAN NOT NULL DEFAULT false
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_parent_student_linked
        ON parent_student(student_id)
        WHERE is_linked = true
    """)

    # --- Learning activity ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS assignments (
            id BIGSERIAL PRIMARY KEY,
            group_id BIGINT NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
            title VARCHAR(256) NOT NULL,
            due_date DATE
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS files (
            id BIGSERIAL PRIMARY KEY,
            uploaded_by BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            assignment_id BIGINT REFERENCES assignments(id) ON DELETE SET NULL,
            file_name VARCHAR(256) NOT NULL DEFAULT '',
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_files_submissions
        ON files(uploaded_by)
        WHERE assignment_id IS NOT NULL
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS attendance (
            id BIGSERIAL PRIMARY KEY,
            student_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            group_id BIGINT REFERENCES groups(id) ON DELETE CASCADE,
            status VARCHAR(16) NOT NULL,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_attendance_student ON attendance(student_id, group_id)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS grades (
            id BIGSERIAL PRIMARY KEY,
            student_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            group_id BIGINT REFERENCES groups(id) ON DELETE CASCADE,
            assignment_id BIGINT REFERENCES assignments(id) ON DELETE SET NULL,
            score NUMERIC(5, 2) NOT NULL,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_grades_student ON grades(student_id, group_id)")

    # --- Gamification ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_progress (
            user_id BIGINT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            total_points BIGINT NOT NULL DEFAULT 0 CHECK (total_points >= 0),
            current_level INTEGER NOT NULL DEFAULT 1,
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            last_activity_date DATE,
            created_at TIMESTAMPTZ DEFAULT NOW(),
            updated_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_progress_points
        ON user_progress(total_points DESC, user_id)
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS points_history (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            points INTEGER NOT NULL CHECK (points >= 0),
            source VARCHAR(32) NOT NULL,
            source_id VARCHAR(128),
            description VARCHAR(256),
            idempotency_key VARCHAR(256) UNIQUE,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_points_history_user
        ON points_history(user_id, created_at DESC)
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_badges (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            badge_id VARCHAR(64) NOT NULL,
            earned_at TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT user_badges_user_id_badge_id_key UNIQUE (user_id, badge_id)
        )
    """)

    # --- Notifications ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS notifications (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type VARCHAR(32) NOT NULL,
            title VARCHAR(256) NOT NULL,
            message TEXT NOT NULL,
            action_url VARCHAR(256),
            read BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_notifications_user
        ON notifications(user_id, created_at DESC)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_notifications_unread
        ON notifications(user_id)
        WHERE read = false
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS push_subscriptions (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            endpoint TEXT UNIQUE NOT NULL,
            p256dh_key TEXT NOT NULL,
            auth_key TEXT NOT NULL,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_push_subscriptions_user ON push_subscriptions(user_id)")

    # --- Reminder audit ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS payment_reminders (
            id BIGSERIAL PRIMARY KEY,
            group_student_id BIGINT NOT NULL REFERENCES group_students(id) ON DELETE CASCADE,
            student_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            parent_id BIGINT REFERENCES users(id) ON DELETE SET NULL,
            reminder_type VARCHAR(16) NOT NULL,
            due_date DATE,
            sent_to_email BOOLEAN NOT NULL DEFAULT false,
            sent_to_sms BOOLEAN NOT NULL DEFAULT false,
            idempotency_key VARCHAR(128) UNIQUE NOT NULL,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS salary_reminders (
            id BIGSERIAL PRIMARY KEY,
            teacher_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            recipient_id BIGINT REFERENCES users(id) ON DELETE SET NULL,
            reminder_type VARCHAR(16) NOT NULL,
            due_date DATE,
            sent_to_email BOOLEAN NOT NULL DEFAULT false,
            sent_to_sms BOOLEAN NOT NULL DEFAULT false,
            idempotency_key VARCHAR(128) UNIQUE NOT NULL,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS salary_reminders CASCADE")
    op.execute("DROP TABLE IF EXISTS payment_reminders CASCADE")
    op.execute("DROP TABLE IF EXISTS push_subscriptions CASCADE")
    op.execute("DROP TABLE IF EXISTS notifications CASCADE")
    op.execute("DROP TABLE IF EXISTS user_badges CASCADE")
    op.execute("DROP TABLE IF EXISTS points_history CASCADE")
    op.execute("DROP TABLE IF EXISTS user_progress CASCADE")
    op.execute("DROP TABLE IF EXISTS grades CASCADE")
    op.execute("DROP TABLE IF EXISTS attendance CASCADE")
    op.execute("DROP TABLE IF EXISTS files CASCADE")
    op.execute("DROP TABLE IF EXISTS assignments CASCADE")
    op.execute("DROP TABLE IF EXISTS parent_student CASCADE")
    op.execute("DROP TABLE IF EXISTS group_students CASCADE")
    op.execute("DROP TABLE IF EXISTS groups CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
