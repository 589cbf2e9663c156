"""
Cron job: remind staff about placeholder spare reservations that still have no vehicle.
Runs on a schedule (configurable interval). Each placeholder is reminded at most
once per day; the reminder notification itself is the dedupe record.
"""
import logging

from app.core.config import settings
from app.core.dates import today_iso
from app.core.email import send_spare_assignment_digest
from app.models.enums import NotificationPriority, NotificationType
from app.storage.base import Storage
from app.storage.factory import open_storage

logger = logging.getLogger(__name__)


async def _already_reminded_today(storage: Storage) -> set[int]:
    day = today_iso()
    reminders = await storage.get_custom_notifications_by_type(NotificationType.spare_assignment_reminder.value)
    return {n.reservation_id for n in reminders if n.date == day and n.reservation_id is not None}


async def collect_due_reminders(storage: Storage) -> list[dict]:
    """Placeholders due within the look-ahead window that were not reminded today."""
    due = await storage.get_placeholder_reservations_needing_assignment(settings.PLACEHOLDER_LOOKAHEAD_DAYS)
    reminded = await _already_reminded_today(storage)
    rows = []
    for placeholder in due:
        if placeholder.id in reminded:
            logger.debug("Placeholder %s already reminded today", placeholder.id)
            continue
        customer = await storage.get_customer(placeholder.customer_id) if placeholder.customer_id else None
        rows.append({
            "reservation_id": placeholder.id,
            "original_reservation_id": placeholder.replacement_for_reservation_id,
            "start_date": placeholder.start_date,
            "end_date": placeholder.end_date,
            "customer": customer.name if customer else None,
        })
    return rows


async def run_spare_assignment_reminders(storage: Storage) -> int:
    """Record one reminder notification per due placeholder and email a digest. Returns the count."""
    rows = await collect_due_reminders(storage)
    if not rows:
        logger.info("Cron: no spare assignments pending")
        return 0

    day = today_iso()
    for row in rows:
        await storage.create_custom_notification({
            "title": "Spare vehicle still unassigned",
            "description": (
                f"Placeholder #{row['reservation_id']} for reservation #{row['original_reservation_id']} "
                f"starts {row['start_date']} and has no vehicle yet"
            ),
            "date": day,
            "type": NotificationType.spare_assignment_reminder.value,
            "priority": NotificationPriority.high.value,
            "link": "/dashboard",
            "icon": "AlertTriangle",
            "reservation_id": row["reservation_id"],
        })

    await send_spare_assignment_digest(rows)
    logger.info("Cron: %d spare assignment reminder(s) recorded", len(rows))
    return len(rows)


async def send_spare_assignment_reminders() -> None:
    logger.info("Cron: spare assignment reminders started")
    async with open_storage() as storage:
        await run_spare_assignment_reminders(storage)
