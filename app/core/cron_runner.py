"""
Run the spare assignment reminder cron in the background (non-blocking).
Started on app startup; cancelled on shutdown.
"""
import asyncio
import logging

from app.core.config import settings
from app.cron.spare_assignment_reminders import send_spare_assignment_reminders

logger = logging.getLogger(__name__)


async def run_spare_reminder_cron_loop() -> None:
    """Loop: run once after short delay, then every configured interval (hours)."""
    interval_hours = settings.CRON_SPARE_REMINDER_INTERVAL_HOURS
    interval_seconds = max(60.0, interval_hours * 3600)  # minimum 1 minute
    logger.info("Spare reminder cron started (interval=%.2f hours)", interval_hours)
    # Small delay so app is fully up before first run
    await asyncio.sleep(10)
    while True:
        try:
            await send_spare_assignment_reminders()
            await asyncio.sleep(interval_seconds)
        except asyncio.CancelledError:
            logger.info("Spare reminder cron cancelled")
            break
        except Exception as e:
            logger.exception("Spare reminder cron loop error: %s", e)
            await asyncio.sleep(interval_seconds)
