import logging

from django.utils import timezone

from blood import models as bmodels
from blood import serializers
from blood.services import accounts, donations
from blood.services import requests as request_service
from blood.services import stock as stock_service
from blood.utils.api import api_view, json_response, parse_json, validate
from .forms import AvailabilityForm, DonationScheduleForm, DonorHistoryForm, ScheduleStatusForm
from .models import BloodDonate, DonationSchedule, ScheduleStatus

logger = logging.getLogger(__name__)

PENDONOR_ONLY = (accounts.ROLE_PENDONOR,)
ADMIN_ONLY = (accounts.ROLE_ADMIN,)


@api_view(methods=('GET',), roles=PENDONOR_ONLY)
def donor_dashboard_view(request):
    donor = request.user.donor
    next_schedule = (
        donor.schedules.filter(status=ScheduleStatus.SCHEDULED, scheduled_for__gte=timezone.now())
        .order_by('scheduled_for')
        .first()
    )
    my_requests = request_service.requests_visible_to(request.user)[:10]
    unread = bmodels.InAppNotification.objects.filter(user=request.user, is_read=False)

    return json_response({
        'profile': serializers.donor_to_dict(donor),
        'next_schedule': serializers.schedule_to_dict(next_schedule) if next_schedule else None,
        'total_donations': donor.donations.count(),
        'stocks': [serializers.stock_to_dict(stock) for stock in stock_service.list_stocks()],
        'requests': [serializers.request_to_dict(item) for item in my_requests],
        'unread_notifications': unread.count(),
    })


@api_view(methods=('PUT',), roles=PENDONOR_ONLY)
def donor_set_availability_view(request):
    data = validate(AvailabilityForm, parse_json(request))
    donor = request.user.donor
    donor.is_available = data['is_available']
    donor.save(update_fields=['is_available'])
    return json_response(serializers.donor_to_dict(donor))


@api_view(methods=('GET', 'POST'), roles=PENDONOR_ONLY)
def schedule_collection_view(request):
    donor = request.user.donor
    if request.method == 'POST':
        data = validate(DonationScheduleForm, parse_json(request))
        schedule = donations.create_schedule(
            donor,
            scheduled_for=data['scheduled_for'],
            location=data['location'],
            notes=data.get('notes') or '',
        )
        return json_response(serializers.schedule_to_dict(schedule), status=201)

    schedules = donor.schedules.select_related('donor__user').order_by('-scheduled_for')
    return json_response([serializers.schedule_to_dict(item) for item in schedules])


@api_view(methods=('POST',), roles=PENDONOR_ONLY)
def schedule_cancel_view(request, pk):
    schedule = donations.cancel_schedule(request.user.donor, pk)
    return json_response(serializers.schedule_to_dict(schedule))


@api_view(methods=('GET',), roles=ADMIN_ONLY)
def admin_schedule_list_view(request):
    schedules = DonationSchedule.objects.select_related('donor__user').order_by('scheduled_for')
    status_filter = request.GET.get('status')
    if status_filter:
        schedules = schedules.filter(status=status_filter.upper())
    if request.GET.get('upcoming') in ('1', 'true'):
        schedules = schedules.filter(scheduled_for__gte=timezone.now())
    return json_response([serializers.schedule_to_dict(item) for item in schedules])


@api_view(methods=('PUT',), roles=ADMIN_ONLY)
def admin_schedule_update_view(request, pk):
    data = validate(ScheduleStatusForm, parse_json(request))
    notes = data.get('notes') or None
    schedule = donations.update_schedule_status(pk, data['status'], notes=notes)
    logger.info("Schedule %s marked %s by %s", pk, schedule.status, request.user.get_username())
    return json_response(serializers.schedule_to_dict(schedule))


@api_view(methods=('GET',), roles=(accounts.ROLE_ADMIN, accounts.ROLE_PENDONOR))
def donor_history_list_view(request):
    histories = BloodDonate.objects.select_related('donor__user')
    if request.role == accounts.ROLE_PENDONOR:
        histories = histories.filter(donor__user=request.user)
    return json_response([serializers.donation_to_dict(item) for item in histories])


@api_view(methods=('POST',), roles=ADMIN_ONLY)
def admin_donor_history_create_view(request):
    data = validate(DonorHistoryForm, parse_json(request))
    donation = donations.record_donation(
        data['donor_id'],
        unit=data.get('bag_count') or 1,
        donated_at=data.get('donated_at'),
        notes=data.get('notes') or '',
        schedule_id=data.get('schedule_id'),
        actor=request.user,
    )
    stock = stock_service.get_stock(donation.bloodgroup)
    return json_response({
        'donation': serializers.donation_to_dict(donation),
        'stock': serializers.stock_to_dict(stock),
    }, status=201)
