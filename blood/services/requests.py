"""Request queue: creating and listing blood requests."""

from __future__ import annotations

import logging

from django.db.models import QuerySet

from blood.exceptions import Forbidden
from blood.models import BloodRequest, RequestStatus

from . import accounts


logger = logging.getLogger(__name__)


def create_request(user, *, patient_name: str, bloodgroup: str, unit: int, reason: str, hospital: str = "") -> BloodRequest:
    """File a Pending request on behalf of a donor or requester account."""

    role = accounts.role_for(user)
    if role == accounts.ROLE_PENDONOR:
        owner = {"request_by_donor": user.donor}
    elif role == accounts.ROLE_PEMOHON:
        owner = {"patient": user.patient}
    else:
        raise Forbidden("Only donor or requester accounts can file blood requests.")

    blood_request = BloodRequest.objects.create(
        patient_name=patient_name,
        bloodgroup=bloodgroup,
        unit=unit,
        reason=reason,
        hospital=hospital,
        status=RequestStatus.PENDING,
        **owner,
    )
    logger.info(
        "Blood request %s filed by %s: %s bag(s) of %s",
        blood_request.pk,
        user.get_username(),
        unit,
        bloodgroup,
    )
    return blood_request


def requests_visible_to(user) -> QuerySet:
    """Admins see the whole queue; everyone else only their own requests."""

    queryset = BloodRequest.objects.select_related("patient__user", "request_by_donor__user", "decided_by")
    role = accounts.role_for(user)
    if role == accounts.ROLE_ADMIN:
        return queryset
    if role == accounts.ROLE_PENDONOR:
        return queryset.filter(request_by_donor__user=user)
    if role == accounts.ROLE_PEMOHON:
        return queryset.filter(patient__user=user)
    return queryset.none()


def pending_requests() -> QuerySet:
    return (
        BloodRequest.objects.filter(status=RequestStatus.PENDING)
        .select_related("patient__user", "request_by_donor__user")
        .order_by("requested_at", "id")
    )
