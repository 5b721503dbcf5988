from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from villa_booking.core.config import get_settings
from villa_booking.services.mailer import send_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingSummary:
    reference: str
    villa_name: str
    guest_name: str
    guest_email: str
    guest_phone: str
    check_in: date
    check_out: date
    guests: int
    total_price: Decimal
    special_request: str | None = None


@dataclass(frozen=True)
class NotificationFlags:
    guest: bool
    admin: bool


def format_currency(amount: Decimal) -> str:
    settings = get_settings()
    return f"{settings.currency} {amount:,.0f}"


def _summary_lines(summary: BookingSummary) -> str:
    lines = [
        f"Booking reference: {summary.reference}",
        f"Villa: {summary.villa_name}",
        f"Check-in: {summary.check_in.isoformat()}",
        f"Check-out: {summary.check_out.isoformat()}",
        f"Guests: {summary.guests}",
        f"Total: {format_currency(summary.total_price)}",
    ]
    if summary.special_request:
        lines.append(f"Special request: {summary.special_request}")
    return "\n".join(lines)


class EmailNotifier:
    """Booking notifications over SMTP. Each send reports success instead of raising."""

    def send_guest_confirmation(self, summary: BookingSummary) -> bool:
        settings = get_settings()
        subject = f"Villa booking confirmation - {summary.reference}"
        body = (
            f"Hello {summary.guest_name},\n\n"
            f"Your villa booking is confirmed.\n\n"
            f"{_summary_lines(summary)}\n\n"
            f"View your booking: {settings.public_base_url.rstrip('/')}/booking/success?reference={summary.reference}\n"
        )
        try:
            send_email(summary.guest_email, subject, body)
        except Exception:
            logger.exception("Failed to send guest confirmation for booking %s", summary.reference)
            return False
        return True

    def send_admin_alert(self, summary: BookingSummary) -> bool:
        settings = get_settings()
        if not settings.admin_email:
            logger.warning("Admin email not configured; skipping alert for booking %s", summary.reference)
            return False
        subject = f"New booking - {summary.villa_name} ({summary.reference})"
        body = (
            f"A new booking was made.\n\n"
            f"Guest: {summary.guest_name} <{summary.guest_email}>, {summary.guest_phone}\n"
            f"{_summary_lines(summary)}\n"
        )
        try:
            send_email(settings.admin_email, subject, body)
        except Exception:
            logger.exception("Failed to send admin alert for booking %s", summary.reference)
            return False
        return True


def get_notifier() -> EmailNotifier:
    return EmailNotifier()


def _outcome(future: Future, deadline: float, label: str, reference: str) -> bool:
    try:
        return bool(future.result(timeout=max(0.0, deadline - time.monotonic())))
    except FutureTimeoutError:
        logger.warning("%s notification for booking %s timed out", label, reference)
    except Exception:
        logger.exception("%s notification for booking %s failed", label, reference)
    return False


def dispatch_booking_notifications(summary: BookingSummary, notifier=None) -> NotificationFlags:
    """Send guest confirmation and admin alert concurrently.

    Waits at most notification_timeout_seconds; a send still running after
    that is reported as failed and left to finish in the background.
    """
    notifier = notifier or get_notifier()
    settings = get_settings()
    deadline = time.monotonic() + settings.notification_timeout_seconds

    pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="booking-notify")
    try:
        guest = pool.submit(notifier.send_guest_confirmation, summary)
        admin = pool.submit(notifier.send_admin_alert, summary)
        flags = NotificationFlags(
            guest=_outcome(guest, deadline, "Guest", summary.reference),
            admin=_outcome(admin, deadline, "Admin", summary.reference),
        )
    finally:
        pool.shutdown(wait=False)

    if not (flags.guest and flags.admin):
        logger.info("Booking %s notifications: guest=%s admin=%s", summary.reference, flags.guest, flags.admin)
    return flags
