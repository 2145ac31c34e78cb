"""Account roles and registration for the three kinds of users."""

from __future__ import annotations

import logging
from typing import Optional

from django.contrib.auth import authenticate
from django.contrib.auth.models import Group, User
from django.db import transaction

from donor.models import Donor
from patient.models import Patient


logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_PENDONOR = "pendonor"
ROLE_PEMOHON = "pemohon"

DONOR_GROUP = "DONOR"
PATIENT_GROUP = "PATIENT"


def role_for(user) -> Optional[str]:
    if user is None or not user.is_authenticated:
        return None
    if user.is_superuser:
        return ROLE_ADMIN
    if Donor.objects.filter(user=user).exists():
        return ROLE_PENDONOR
    if Patient.objects.filter(user=user).exists():
        return ROLE_PEMOHON
    return None


def authenticate_user(request, identifier: str, password: str) -> Optional[User]:
    """Accept either a username or an email address as the login identifier."""

    identifier = (identifier or "").strip()
    username = identifier
    if "@" in identifier:
        match = User.objects.filter(email__iexact=identifier).order_by("id").first()
        if match is not None:
            username = match.username
    return authenticate(request, username=username, password=password)


@transaction.atomic
def register_user(*, name: str, email: str, password: str, role: str, bloodgroup: str = "", mobile: str = "", address: str = "") -> User:
    first_name, _, last_name = name.strip().partition(" ")
    user = User.objects.create_user(
        username=email.lower(),
        email=email.lower(),
        password=password,
        first_name=first_name[:150],
        last_name=last_name[:150],
    )

    if role == ROLE_PENDONOR:
        Donor.objects.create(user=user, bloodgroup=bloodgroup, mobile=mobile, address=address)
        group, _ = Group.objects.get_or_create(name=DONOR_GROUP)
    else:
        Patient.objects.create(user=user, bloodgroup=bloodgroup, mobile=mobile, address=address)
        group, _ = Group.objects.get_or_create(name=PATIENT_GROUP)
    group.user_set.add(user)

    logger.info("Registered %s account %s", role, user.username)
    return user
