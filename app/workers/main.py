"""ARQ worker entrypoint: runs the reminder cron jobs."""

import asyncio
from zoneinfo import ZoneInfo

from arq import cron
from arq.connections import RedisSettings

from app.core.config import get_settings
from app.workers.reminders import send_daily_reminders, send_urgent_reminders

# Hourly sweep window: 08:00-18:00, Monday (0) to Saturday (5)
URGENT_HOURS = set(range(8, 19))
URGENT_WEEKDAYS = set(range(0, 6))


def _redis_settings() -> RedisSettings:
    """Parse REDIS_URL into ARQ RedisSettings."""
    settings = get_settings()
    # redis://host:port/db
    url = settings.redis_url
    rest = url.split("://", 1)[1] if "://" in url else url
    host_port, _, db = rest.partition("/")
    host, _, port = host_port.partition(":")
    return RedisSettings(
        host=host or "localhost",
        port=int(port) if port else 6379,
        database=int(db) if db else 0,
    )


async def startup(ctx: dict) -> None:
    """Called when the worker starts."""
    from app.core.database import init_db
    from app.core.logging_config import configure_logging

    configure_logging()
    await init_db()


async def shutdown(ctx: dict) -> None:
    """Called when the worker shuts down."""


_settings = get_settings()


class WorkerSettings:
    """ARQ worker configuration."""
    functions = [send_daily_reminders, send_urgent_reminders]
    cron_jobs = [
        cron(
            send_daily_reminders,
            hour=_settings.daily_reminder_hour,
            minute=0,
            run_at_startup=False,
        ),
        cron(
            send_urgent_reminders,
            hour=URGENT_HOURS,
            weekday=URGENT_WEEKDAYS,
            minute=0,
        ),
    ]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = _redis_settings()
    max_jobs = 10
    job_timeout = 600
    # Cron hours are read in the scheduler timezone
    timezone = ZoneInfo(_settings.scheduler_timezone)


if __name__ == "__main__":
    from arq import run_worker
    asyncio.run(run_worker(WorkerSettings))  # type: ignore[arg-type]
