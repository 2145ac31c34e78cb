"""Plain-dict renderings of models for the JSON API."""


def _iso(value):
    return value.isoformat() if value else None


def stock_to_dict(stock):
    return {
        'blood_type': stock.bloodgroup,
        'bag_count': stock.unit,
        'status': stock.status,
        'updated_at': _iso(stock.updated_at),
    }


def request_to_dict(blood_request):
    requester = blood_request.requester_user
    return {
        'id': blood_request.pk,
        'patient_name': blood_request.patient_name,
        'blood_type': blood_request.bloodgroup,
        'bag_count': blood_request.unit,
        'purpose': blood_request.reason,
        'hospital': blood_request.hospital,
        'status': blood_request.status,
        'admin_note': blood_request.admin_note,
        'requested_at': _iso(blood_request.requested_at),
        'decided_at': _iso(blood_request.decided_at),
        'decided_by': blood_request.decided_by.get_username() if blood_request.decided_by_id else None,
        'requested_by': requester.get_username() if requester else None,
    }


def user_to_dict(user, role):
    data = {
        'id': user.pk,
        'username': user.get_username(),
        'name': f"{user.first_name} {user.last_name}".strip(),
        'email': user.email,
        'role': role,
        'blood_type': None,
        'phone': None,
        'address': None,
    }
    profile = None
    if role == 'pendonor':
        profile = getattr(user, 'donor', None)
    elif role == 'pemohon':
        profile = getattr(user, 'patient', None)
    if profile is not None:
        data.update(
            blood_type=profile.bloodgroup or None,
            phone=profile.mobile or None,
            address=profile.address or None,
        )
    return data


def donor_to_dict(donor):
    return {
        'id': donor.pk,
        'user_id': donor.user_id,
        'name': donor.get_name,
        'email': donor.user.email,
        'blood_type': donor.bloodgroup,
        'phone': donor.mobile,
        'address': donor.address,
        'is_available': donor.is_available,
        'last_donated_at': _iso(donor.last_donated_at),
        'next_eligible_date': _iso(donor.next_eligible_donation_date),
        'eligibility': donor.eligibility_label,
    }


def schedule_to_dict(schedule):
    return {
        'id': schedule.pk,
        'donor_id': schedule.donor_id,
        'donor_name': schedule.donor.get_name,
        'scheduled_for': _iso(schedule.scheduled_for),
        'location': schedule.location,
        'status': schedule.status,
        'notes': schedule.notes,
        'reminder_sent_at': _iso(schedule.reminder_sent_at),
    }


def donation_to_dict(donation):
    return {
        'id': donation.pk,
        'donor_id': donation.donor_id,
        'donor_name': donation.donor.get_name,
        'blood_type': donation.bloodgroup,
        'bag_count': donation.unit,
        'donated_at': _iso(donation.donated_at),
        'notes': donation.notes,
        'schedule_id': donation.schedule_id,
    }


def notification_to_dict(notification):
    return {
        'id': notification.pk,
        'title': notification.title,
        'message': notification.message,
        'is_read': notification.is_read,
        'related_request_id': notification.related_request_id,
        'created_at': _iso(notification.created_at),
    }
