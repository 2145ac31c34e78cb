"""Approval workflow for blood requests.

Approving a request and taking the bags out of stock happen in one database
transaction. The request row is locked first and the stock row second, in
every code path, so two operators working the same blood group are
serialized on the stock row and can never both spend the same bags.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from blood.exceptions import InsufficientStock, InvalidState, NotFound, TransientFailure, ValidationFailed
from blood.models import ActionAuditLog, BloodRequest, RequestStatus, Stock

from . import audit, notifications


logger = logging.getLogger(__name__)

# Status labels the original Indonesian front end sends.
STATUS_ALIASES = {
    'disetujui': RequestStatus.APPROVED,
    'ditolak': RequestStatus.REJECTED,
    'approved': RequestStatus.APPROVED,
    'rejected': RequestStatus.REJECTED,
}


@dataclass
class Decision:
    """Outcome of a committed approve/reject call."""

    blood_request: BloodRequest
    stock: Optional[Stock] = None


def _lock_request(request_id) -> BloodRequest:
    try:
        return BloodRequest.objects.select_for_update().get(pk=request_id)
    except (BloodRequest.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"Blood request {request_id} not found.") from None


def _ensure_pending(blood_request: BloodRequest) -> None:
    if not blood_request.is_pending:
        raise InvalidState(
            f"Blood request {blood_request.pk} has already been {blood_request.status.lower()}."
        )


def _mark_decided(blood_request: BloodRequest, status: str, note: str, actor) -> None:
    blood_request.status = status
    blood_request.admin_note = (note or "").strip()[:500]
    blood_request.decided_at = timezone.now()
    blood_request.decided_by = actor if getattr(actor, 'is_authenticated', False) else None
    blood_request.save(update_fields=['status', 'admin_note', 'decided_at', 'decided_by'])


def approve(request_id, *, actor=None, note: str = "") -> Decision:
    """Approve a Pending request and take its bags out of stock, atomically."""

    try:
        with transaction.atomic():
            blood_request = _lock_request(request_id)
            _ensure_pending(blood_request)

            try:
                stock = Stock.objects.select_for_update().get(bloodgroup=blood_request.bloodgroup)
            except Stock.DoesNotExist:
                raise NotFound(f"No stock record for blood group {blood_request.bloodgroup}.") from None

            requested = blood_request.unit
            if stock.unit < requested:
                raise InsufficientStock(blood_request.bloodgroup, stock.unit, requested)

            # The WHERE guard keeps the count non-negative even where the
            # backend ignores row locks.
            decremented = Stock.objects.filter(pk=stock.pk, unit__gte=requested).update(
                unit=F('unit') - requested,
                updated_at=timezone.now(),
            )
            stock.refresh_from_db(fields=['unit', 'updated_at'])
            if not decremented:
                raise InsufficientStock(blood_request.bloodgroup, stock.unit, requested)

            _mark_decided(blood_request, RequestStatus.APPROVED, note, actor)
            audit.record(
                ActionAuditLog.Action.APPROVE_REQUEST,
                ActionAuditLog.EntityType.REQUEST,
                blood_request.pk,
                bloodgroup=blood_request.bloodgroup,
                units=requested,
                status_before=RequestStatus.PENDING,
                status_after=RequestStatus.APPROVED,
                actor=actor,
                notes=blood_request.admin_note,
                payload={'stock_before': stock.unit + requested, 'stock_after': stock.unit},
            )
            notifications.notify_request_decided(blood_request)
    except DatabaseError as exc:
        logger.error("Approval of blood request %s rolled back: %s", request_id, exc)
        raise TransientFailure() from exc

    logger.info(
        "Blood request %s approved: %s bags of %s, %s bags remaining",
        blood_request.pk,
        blood_request.unit,
        blood_request.bloodgroup,
        stock.unit,
    )
    return Decision(blood_request=blood_request, stock=stock)


def reject(request_id, note: str = "", *, actor=None) -> Decision:
    """Reject a Pending request. Stock is never touched."""

    try:
        with transaction.atomic():
            blood_request = _lock_request(request_id)
            _ensure_pending(blood_request)
            _mark_decided(blood_request, RequestStatus.REJECTED, note, actor)
            audit.record(
                ActionAuditLog.Action.REJECT_REQUEST,
                ActionAuditLog.EntityType.REQUEST,
                blood_request.pk,
                bloodgroup=blood_request.bloodgroup,
                units=blood_request.unit,
                status_before=RequestStatus.PENDING,
                status_after=RequestStatus.REJECTED,
                actor=actor,
                notes=blood_request.admin_note,
            )
            notifications.notify_request_decided(blood_request)
    except DatabaseError as exc:
        logger.error("Rejection of blood request %s rolled back: %s", request_id, exc)
        raise TransientFailure() from exc

    logger.info("Blood request %s rejected (%s)", blood_request.pk, blood_request.admin_note or "no note")
    return Decision(blood_request=blood_request)


def decide(request_id, status, note: str = "", *, actor=None) -> Decision:
    """Route a status update to approve or reject."""

    resolved = STATUS_ALIASES.get(str(status or "").strip().lower())
    if resolved == RequestStatus.APPROVED:
        return approve(request_id, actor=actor, note=note)
    if resolved == RequestStatus.REJECTED:
        return reject(request_id, note, actor=actor)
    raise ValidationFailed(
        "Status must be Approved or Rejected.",
        {"status": [f"Unsupported status: {status!r}."]},
    )
