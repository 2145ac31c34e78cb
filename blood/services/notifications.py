"""In-app and email notifications for staff, donors and requesters."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable, List, Optional

import redis
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.core.mail import send_mail
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone
from kombu.exceptions import OperationalError

from blood.models import BloodRequest, InAppNotification, RequestStatus

from . import stock as stock_service


logger = logging.getLogger(__name__)


def notify_user(user, title: str, message: str, *, related_request: Optional[BloodRequest] = None) -> Optional[InAppNotification]:
    if user is None:
        return None
    return InAppNotification.objects.create(
        user=user,
        title=title[:120],
        message=message,
        related_request=related_request,
    )


def notify_request_decided(blood_request: BloodRequest) -> None:
    """Tell the requester about a decision.

    The in-app row is written in the caller's transaction; the SMS is only
    queued once that transaction commits.
    """

    if blood_request.status == RequestStatus.APPROVED:
        title = "Blood request approved"
        message = (
            f"Your request #{blood_request.pk} for {blood_request.unit} bag(s) of "
            f"{blood_request.bloodgroup} for {blood_request.patient_name} was approved."
        )
    else:
        title = "Blood request rejected"
        message = f"Your request #{blood_request.pk} for {blood_request.patient_name} was rejected."
    if blood_request.admin_note:
        message = f"{message} Note: {blood_request.admin_note}"

    notify_user(blood_request.requester_user, title, message, related_request=blood_request)

    if settings.AWS_SNS_ENABLED:
        request_id = blood_request.pk
        transaction.on_commit(lambda: _queue_decision_sms(request_id))


def _queue_decision_sms(request_id) -> None:
    """Queue the decision SMS. Runs after commit, so a broker outage must not fail the decision."""

    from blood import tasks

    try:
        tasks.send_request_decision_sms.delay(request_id)
    except OperationalError as exc:
        logger.error("Could not queue decision SMS for request %s: %s", request_id, exc)


def _admin_emails() -> List[str]:
    User = get_user_model()
    return list(
        User.objects.filter(is_superuser=True, is_active=True)
        .exclude(email="")
        .values_list("email", flat=True)
    )


def _send(recipients: Iterable[str], subject: str, body: str) -> int:
    recipients = [r for r in recipients if r]
    if not recipients:
        logger.info("No recipients for '%s'; email skipped", subject)
        return 0
    return send_mail(subject, body, settings.NOTIFICATION_FROM_EMAIL, recipients, fail_silently=False)


def send_stock_alert() -> dict:
    """Email admins when any blood group is Critical or Low."""

    flagged = stock_service.low_stocks()
    if not flagged:
        return {"status": "ok", "flagged": [], "sent": 0}

    lines = [f"- {stock.bloodgroup}: {stock.unit} bag(s) ({stock.status})" for stock in flagged]
    body = "The following blood groups need restocking:\n\n" + "\n".join(lines)
    sent = _send(_admin_emails(), "Blood stock alert", body)
    logger.warning("Stock alert for %s", ", ".join(stock.bloodgroup for stock in flagged))
    return {"status": "alerted", "flagged": [stock.bloodgroup for stock in flagged], "sent": sent}


def send_donation_reminders(now=None) -> int:
    """Remind donors about bookings starting within DONATION_REMINDER_HOURS."""

    from donor.models import DonationSchedule, ScheduleStatus

    now = now or timezone.now()
    window_end = now + timedelta(hours=settings.DONATION_REMINDER_HOURS)
    upcoming = (
        DonationSchedule.objects.select_related("donor__user")
        .filter(
            status=ScheduleStatus.SCHEDULED,
            reminder_sent_at__isnull=True,
            scheduled_for__gte=now,
            scheduled_for__lte=window_end,
        )
    )

    reminded = 0
    for schedule in upcoming:
        user = schedule.donor.user
        when = timezone.localtime(schedule.scheduled_for).strftime("%d %b %Y %H:%M")
        message = f"Reminder: your blood donation is scheduled for {when} at {schedule.location}."
        notify_user(user, "Donation reminder", message)
        if user.email:
            _send([user.email], "Blood donation reminder", message)
        schedule.reminder_sent_at = now
        schedule.save(update_fields=["reminder_sent_at"])
        reminded += 1

    logger.info("Sent %s donation reminders", reminded)
    return reminded


def weekly_summary(now=None) -> dict:
    now = now or timezone.now()
    since = now - timedelta(days=7)
    recent = BloodRequest.objects.filter(requested_at__gte=since)
    decided = BloodRequest.objects.filter(decided_at__gte=since)
    return {
        "since": since.isoformat(),
        "requests_received": recent.count(),
        "approved": decided.filter(status=RequestStatus.APPROVED).count(),
        "rejected": decided.filter(status=RequestStatus.REJECTED).count(),
        "bags_issued": decided.filter(status=RequestStatus.APPROVED).aggregate(total=Sum("unit"))["total"] or 0,
        "pending": BloodRequest.objects.filter(status=RequestStatus.PENDING).count(),
        "stocks": {stock.bloodgroup: stock.unit for stock in stock_service.list_stocks()},
    }


def send_weekly_summary(now=None) -> dict:
    summary = weekly_summary(now)
    stock_lines = "\n".join(f"- {group}: {units}" for group, units in summary["stocks"].items())
    body = (
        f"Requests received: {summary['requests_received']}\n"
        f"Approved: {summary['approved']} ({summary['bags_issued']} bags issued)\n"
        f"Rejected: {summary['rejected']}\n"
        f"Still pending: {summary['pending']}\n\n"
        f"Current stock:\n{stock_lines}"
    )
    summary["sent"] = _send(_admin_emails(), "Weekly blood bank summary", body)
    return summary


def send_custom(email: str, subject: str, message: str) -> int:
    return _send([email], subject, message)


def send_test_email(email: str) -> int:
    return _send([email], "Test email", "Email notifications are configured correctly.")


def system_status() -> dict:
    """Report how notifications are wired in this deployment."""

    eager = bool(getattr(settings, "CELERY_TASK_ALWAYS_EAGER", False))
    broker_url = str(getattr(settings, "CELERY_BROKER_URL", "") or "")
    status = {
        "email_backend": settings.EMAIL_BACKEND,
        "email_from": settings.NOTIFICATION_FROM_EMAIL,
        "sms_enabled": bool(settings.AWS_SNS_ENABLED),
        "task_always_eager": eager,
        "broker_ok": None,
        "broker_error": "",
        "critical_stocks": [stock.bloodgroup for stock in stock_service.critical_stocks()],
    }

    if eager:
        status["broker_ok"] = True
        return status

    if not (broker_url.startswith("redis://") or broker_url.startswith("rediss://")):
        return status

    cache_key = "notifications:broker_health:v1"
    cached = cache.get(cache_key)
    if isinstance(cached, dict):
        status["broker_ok"] = cached.get("ok")
        status["broker_error"] = cached.get("error") or ""
        return status

    try:
        client = redis.Redis.from_url(
            broker_url,
            socket_connect_timeout=0.25,
            socket_timeout=0.25,
            retry_on_timeout=False,
        )
        client.ping()
        status["broker_ok"] = True
    except redis.RedisError as exc:
        status["broker_ok"] = False
        status["broker_error"] = str(exc)
        logger.debug("Celery broker health check failed: %s", exc)

    cache.set(cache_key, {"ok": status["broker_ok"], "error": status["broker_error"]}, timeout=30)
    return status
