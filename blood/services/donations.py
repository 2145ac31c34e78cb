"""Donor history and donation scheduling."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from blood.exceptions import InvalidState, NotFound, TransientFailure, ValidationFailed
from blood.models import ActionAuditLog, Stock
from donor.models import BloodDonate, DonationSchedule, Donor, ScheduleStatus

from . import audit


logger = logging.getLogger(__name__)


def record_donation(
    donor_id,
    *,
    unit: int = 1,
    donated_at=None,
    notes: str = "",
    schedule_id=None,
    actor=None,
) -> BloodDonate:
    """Record a completed donation and add its bags to stock in one transaction."""

    donated_at = donated_at or timezone.localdate()
    if unit < 1:
        raise ValidationFailed("A donation must add at least one bag.", {"bag_count": ["Must be 1 or greater."]})
    if donated_at > timezone.localdate():
        raise ValidationFailed("Donation date cannot be in the future.", {"donated_at": ["Cannot be in the future."]})

    try:
        with transaction.atomic():
            try:
                donor = Donor.objects.select_for_update().select_related("user").get(pk=donor_id)
            except Donor.DoesNotExist:
                raise NotFound(f"Donor {donor_id} not found.") from None

            schedule = None
            if schedule_id:
                try:
                    schedule = DonationSchedule.objects.select_for_update().get(pk=schedule_id, donor=donor)
                except DonationSchedule.DoesNotExist:
                    raise NotFound(f"Schedule {schedule_id} not found for this donor.") from None
                if schedule.status != ScheduleStatus.SCHEDULED:
                    raise InvalidState(f"Schedule {schedule.pk} is already {schedule.get_status_display().lower()}.")

            updated = Stock.objects.filter(bloodgroup=donor.bloodgroup).update(
                unit=F("unit") + unit,
                updated_at=timezone.now(),
            )
            if not updated:
                raise NotFound(f"No stock record for blood group {donor.bloodgroup}.")

            donation = BloodDonate.objects.create(
                donor=donor,
                schedule=schedule,
                bloodgroup=donor.bloodgroup,
                unit=unit,
                donated_at=donated_at,
                notes=notes,
                recorded_by=actor if getattr(actor, "is_authenticated", False) else None,
            )

            if donor.last_donated_at is None or donated_at > donor.last_donated_at:
                donor.last_donated_at = donated_at
                donor.save(update_fields=["last_donated_at"])

            if schedule is not None:
                schedule.status = ScheduleStatus.COMPLETED
                schedule.save(update_fields=["status"])

            audit.record(
                ActionAuditLog.Action.RECORD_DONATION,
                ActionAuditLog.EntityType.DONATION,
                donation.pk,
                bloodgroup=donor.bloodgroup,
                units=unit,
                status_after="Recorded",
                actor=actor,
                notes=notes,
            )
    except DatabaseError as exc:
        logger.error("Recording donation for donor %s rolled back: %s", donor_id, exc)
        raise TransientFailure() from exc

    logger.info("Recorded %s bag(s) of %s from donor %s", unit, donation.bloodgroup, donor.pk)
    return donation


def create_schedule(donor: Donor, *, scheduled_for, location: str, notes: str = "") -> DonationSchedule:
    if scheduled_for <= timezone.now():
        raise ValidationFailed("Schedule must be in the future.", {"scheduled_for": ["Must be in the future."]})

    eligible_from = donor.next_eligible_donation_date
    if eligible_from and timezone.localtime(scheduled_for).date() < eligible_from:
        raise InvalidState(f"Donor is in the recovery period until {eligible_from.isoformat()}.")

    if donor.schedules.filter(status=ScheduleStatus.SCHEDULED).exists():
        raise InvalidState("Donor already has an open donation schedule.")

    schedule = DonationSchedule.objects.create(
        donor=donor,
        scheduled_for=scheduled_for,
        location=location,
        notes=notes,
    )
    logger.info("Donor %s booked a donation for %s", donor.pk, scheduled_for.isoformat())
    return schedule


def cancel_schedule(donor: Donor, schedule_id) -> DonationSchedule:
    with transaction.atomic():
        try:
            schedule = DonationSchedule.objects.select_for_update().get(pk=schedule_id, donor=donor)
        except DonationSchedule.DoesNotExist:
            raise NotFound(f"Schedule {schedule_id} not found.") from None
        if schedule.status != ScheduleStatus.SCHEDULED:
            raise InvalidState(f"Schedule {schedule.pk} is already {schedule.get_status_display().lower()}.")
        schedule.status = ScheduleStatus.CANCELLED
        schedule.save(update_fields=["status"])
    return schedule


def update_schedule_status(schedule_id, status: str, *, notes: Optional[str] = None) -> DonationSchedule:
    """Admin-side transition of a Scheduled booking to Completed or Cancelled."""

    if status not in (ScheduleStatus.COMPLETED, ScheduleStatus.CANCELLED):
        raise ValidationFailed("Status must be COMPLETED or CANCELLED.", {"status": ["Unsupported status."]})

    with transaction.atomic():
        try:
            schedule = DonationSchedule.objects.select_for_update().get(pk=schedule_id)
        except DonationSchedule.DoesNotExist:
            raise NotFound(f"Schedule {schedule_id} not found.") from None
        if schedule.status != ScheduleStatus.SCHEDULED:
            raise InvalidState(f"Schedule {schedule.pk} is already {schedule.get_status_display().lower()}.")
        schedule.status = status
        fields = ["status"]
        if notes is not None:
            schedule.notes = notes
            fields.append("notes")
        schedule.save(update_fields=fields)
    return schedule


def schedules_this_week(today=None) -> int:
    """Count open or completed bookings falling in the current Monday-Sunday week."""

    today = today or timezone.localdate()
    week_start = today - timedelta(days=today.weekday())
    week_end = week_start + timedelta(days=7)
    return (
        DonationSchedule.objects.filter(
            scheduled_for__date__gte=week_start,
            scheduled_for__date__lt=week_end,
        )
        .exclude(status=ScheduleStatus.CANCELLED)
        .count()
    )
