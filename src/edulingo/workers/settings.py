"""arq worker settings module.

Import path for arq CLI: arq edulingo.workers.settings.WorkerSettings
"""

from __future__ import annotations

from zoneinfo import ZoneInfo

from arq import cron
from arq.connections import RedisSettings

from edulingo.config import get_settings
from edulingo.workers.jobs import (
    class_reports_job,
    jobs_shutdown,
    jobs_startup,
    payment_reminders_job,
    salary_reminders_job,
)

_settings = get_settings()


class WorkerSettings:
    """Cron schedule of the batch jobs, in the school's time zone."""

    functions = [payment_reminders_job, salary_reminders_job, class_reports_job]
    cron_jobs = [
        cron(payment_reminders_job, hour=set(_settings.payment_reminder_hours), minute=0, unique=True),
        cron(salary_reminders_job, hour=set(_settings.salary_reminder_hours), minute=0, unique=True),
        cron(class_reports_job, minute=0, unique=True),
    ]
    on_startup = jobs_startup
    on_shutdown = jobs_shutdown
    redis_settings = RedisSettings.from_dsn(_settings.arq_redis_url)
    timezone = ZoneInfo(_settings.timezone)
    max_jobs = 3
    job_timeout = 600
