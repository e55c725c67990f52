"""
Polling worker for scheduled newsletter jobs.

Wakes up every WORKER_POLL_INTERVAL seconds and sends the daily and weekly
digests when DAILY_DIGEST_INTERVAL or WEEKLY_DIGEST_INTERVAL has passed
since their last run. Last run times are stored in system_settings, so
restarts do not resend.

Usage:
    python worker.py
"""

import logging
import os
import sys
import time
from datetime import datetime, timezone
from typing import Callable, Optional

# Add the package to the path when run as a script
sys.path.insert(0, os.path.dirname(__file__))

from sqlalchemy.exc import SQLAlchemyError

from portal.core.config import settings
from portal.core.logging_config import setup_logging
from portal.database import init_db, session_scope
from portal.exceptions import PortalException
from portal.repositories import SystemSettingRepository
from portal.services import NotificationService

LAST_DIGEST_KEY = "weekly_digest_last_run"
LAST_DAILY_DIGEST_KEY = "daily_digest_last_run"

setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger("worker")


def _parse_timestamp(key: str, value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        logger.warning(f"Ignoring malformed {key} value: {value!r}")
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _run_if_due(db, key: str, interval: int, label: str, send: Callable, now: Optional[datetime]) -> bool:
    now = now or datetime.now(timezone.utc)
    setting_repo = SystemSettingRepository(db)
    last_run = _parse_timestamp(key, setting_repo.get_value(key))

    if last_run is not None and (now - last_run).total_seconds() < interval:
        return False

    report = send(now)
    setting_repo.set_value(key, now.isoformat(), description=f"Last {label} run (UTC)")
    db.commit()
    logger.info(f"{label.capitalize()}: sent={report.sent} failed={report.failed} skipped={report.skipped}")
    return True


def run_weekly_digest_if_due(db, now: Optional[datetime] = None, mail_client=None) -> bool:
    """Send the weekly digest if the interval has elapsed.

    Returns True when a digest run happened.
    """
    service = NotificationService(db, mail_client=mail_client)
    return _run_if_due(
        db, LAST_DIGEST_KEY, settings.weekly_digest_interval, "weekly digest", service.send_weekly_digest, now,
    )


def run_daily_digest_if_due(db, now: Optional[datetime] = None, mail_client=None) -> bool:
    service = NotificationService(db, mail_client=mail_client)
    return _run_if_due(
        db, LAST_DAILY_DIGEST_KEY, settings.daily_digest_interval, "daily digest", service.send_daily_digest, now,
    )


def main() -> None:
    """Poll until interrupted."""
    logger.info(f"Worker started, polling every {settings.worker_poll_interval}s")
    logger.info(
        f"Digest intervals: daily={settings.daily_digest_interval}s weekly={settings.weekly_digest_interval}s"
    )
    init_db()

    while True:
        try:
            with session_scope() as db:
                run_daily_digest_if_due(db)
                run_weekly_digest_if_due(db)
        except KeyboardInterrupt:
            logger.info("Worker shutting down")
            break
        except (PortalException, SQLAlchemyError) as e:
            logger.error(f"Worker error: {e}")

        try:
            time.sleep(settings.worker_poll_interval)
        except KeyboardInterrupt:
            logger.info("Worker shutting down")
            break


if __name__ == "__main__":
    main()
