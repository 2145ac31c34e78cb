import logging

from django.contrib.auth import login, logout
from django.contrib.auth.models import User
from django.db.models import Count, Q, Sum
from django.middleware.csrf import get_token
from django.views.decorators.csrf import ensure_csrf_cookie
from kombu.exceptions import OperationalError

from . import forms, models, serializers, tasks
from .exceptions import NotFound, TransientFailure, Unauthorized, ValidationFailed
from .services import accounts, approval, donations, notifications
from .services import requests as request_service
from .services import stock as stock_service
from .utils.api import api_view, json_response, parse_json, validate
from donor import models as dmodels

logger = logging.getLogger(__name__)

ADMIN_ONLY = (accounts.ROLE_ADMIN,)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

@ensure_csrf_cookie
@api_view(methods=('GET',), public=True)
def csrf_view(request):
    return json_response({'csrf_token': get_token(request)})


@api_view(methods=('POST',), public=True)
def login_view(request):
    data = validate(forms.LoginForm, parse_json(request))
    identifier = data.get('email') or data.get('username')
    user = accounts.authenticate_user(request, identifier, data['password'])
    if user is None:
        logger.info("Failed login for %s", identifier)
        raise Unauthorized('Invalid credentials.')

    login(request, user)
    role = accounts.role_for(user)
    logger.info("User %s logged in as %s", user.get_username(), role)
    return json_response({'user': serializers.user_to_dict(user, role)})


@api_view(methods=('POST',))
def logout_view(request):
    username = request.user.get_username()
    logout(request)
    logger.info("User %s logged out", username)
    return json_response({'detail': 'Logged out.'})


@api_view(methods=('GET',))
def me_view(request):
    return json_response(serializers.user_to_dict(request.user, request.role))


@api_view(methods=('POST',), public=True)
def register_view(request):
    data = validate(forms.RegisterForm, parse_json(request))
    user = accounts.register_user(
        name=data['name'],
        email=data['email'],
        password=data['password'],
        role=data['role'],
        bloodgroup=data.get('blood_type') or '',
        mobile=data.get('phone') or '',
        address=data.get('address') or '',
    )
    return json_response(serializers.user_to_dict(user, data['role']), status=201)


# ---------------------------------------------------------------------------
# Stock ledger
# ---------------------------------------------------------------------------

@api_view(methods=('GET',), public=True)
def stock_list_view(request):
    stocks = stock_service.list_stocks()
    status_filter = request.GET.get('status')
    if status_filter:
        stocks = [stock for stock in stocks if stock.status.lower() == status_filter.lower()]
    return json_response([serializers.stock_to_dict(stock) for stock in stocks])


@api_view(methods=('PUT',), roles=ADMIN_ONLY)
def admin_stock_update_view(request, blood_type):
    payload = parse_json(request)
    # Accept the field name the original front end sends for the count.
    if 'bag_count' not in payload and 'jumlah_kantong' in payload:
        payload['bag_count'] = payload.get('jumlah_kantong')
    data = validate(forms.StockQuantityForm, payload)
    stock =stock_service.set_stock_quantity(blood_type, data['bag_count'], actor=request.user)
    return json_response(serializers.stock_to_dict(stock))


# ---------------------------------------------------------------------------
# Request queue and approval workflow
# ---------------------------------------------------------------------------

@api_view(methods=('GET', 'POST'))
def blood_request_collection_view(request):
    if request.method == 'POST':
        data = validate(forms.BloodRequestForm, parse_json(request))
        blood_request = request_service.create_request(
            request.user,
            patient_name=data['patient_name'],
            bloodgroup=data['blood_type'],
            unit=data['bag_count'],
            reason=data['purpose'],
            hospital=data.get('hospital') or '',
        )
        return json_response(serializers.request_to_dict(blood_request), status=201)

    queryset = request_service.requests_visible_to(request.user)
    status_filter = request.GET.get('status')
    if status_filter:
        queryset = queryset.filter(status__iexact=status_filter)
    return json_response([serializers.request_to_dict(item) for item in queryset])


@api_view(methods=('GET',), roles=ADMIN_ONLY)
def admin_pending_request_view(request):
    return json_response([serializers.request_to_dict(item) for item in request_service.pending_requests()])


def _decision_payload(decision):
    payload = {'request': serializers.request_to_dict(decision.blood_request)}
    if decision.stock is not None:
        payload['stock'] = serializers.stock_to_dict(decision.stock)
    return payload


@api_view(methods=('PUT',), roles=ADMIN_ONLY)
def admin_request_decision_view(request, pk):
    payload = parse_json(request)
    # Accept the field name the original front end sends for the note.
    if 'note' not in payload and 'catatan_admin' in payload:
        payload['note'] = payload.get('catatan_admin')
    data = validate(forms.RequestDecisionForm, payload)
    decision = approval.decide(pk, data['status'], data.get('note') or '', actor=request.user)
    return json_response(_decision_payload(decision))


@api_view(methods=('POST',), roles=ADMIN_ONLY)
def admin_request_approve_view(request, pk):
    data = validate(forms.DecisionNoteForm, parse_json(request))
    decision = approval.approve(pk, actor=request.user, note=data.get('note') or '')
    return json_response(_decision_payload(decision))


@api_view(methods=('POST',), roles=ADMIN_ONLY)
def admin_request_reject_view(request, pk):
    data = validate(forms.DecisionNoteForm, parse_json(request))
    decision = approval.reject(pk, data.get('note') or '', actor=request.user)
    return json_response(_decision_payload(decision))


# ---------------------------------------------------------------------------
# Admin dashboards
# ---------------------------------------------------------------------------

@api_view(methods=('GET',), roles=ADMIN_ONLY)
def admin_dashboard_view(request):
    total_bags = models.Stock.objects.aggregate(total=Sum('unit'))['total'] or 0
    return json_response({
        'total_pendonor': dmodels.Donor.objects.count(),
        'critical_stock_count': len(stock_service.critical_stocks()),
        'schedules_this_week': donations.schedules_this_week(),
        'pending_requests': models.BloodRequest.objects.filter(status=models.RequestStatus.PENDING).count(),
        'total_bags': total_bags,
    })


@api_view(methods=('GET',), roles=ADMIN_ONLY)
def admin_statistics_view(request):
    requests = models.BloodRequest.objects.all()
    counts = requests.aggregate(
        total=Count('id'),
        pending=Count('id', filter=Q(status=models.RequestStatus.PENDING)),
        approved=Count('id', filter=Q(status=models.RequestStatus.APPROVED)),
        rejected=Count('id', filter=Q(status=models.RequestStatus.REJECTED)),
        approved_bags=Sum('unit', filter=Q(status=models.RequestStatus.APPROVED)),
        rejected_bags=Sum('unit', filter=Q(status=models.RequestStatus.REJECTED)),
    )

    processed = counts['approved'] + counts['rejected']
    approval_rate = round((counts['approved'] * 100) / processed, 1) if processed else 0

    # Per blood group breakdown of decided requests
    blood_group_stats = {}
    rows = (
        requests.exclude(status=models.RequestStatus.PENDING)
        .values('bloodgroup', 'status')
        .annotate(count=Count('id'), bags=Sum('unit'))
    )
    for row in rows:
        stats = blood_group_stats.setdefault(row['bloodgroup'], {
            'approved': 0,
            'rejected': 0,
            'approved_bags': 0,
            'rejected_bags': 0,
        })
        key = 'approved' if row['status'] == models.RequestStatus.APPROVED else 'rejected'
        stats[key] += row['count']
        stats[f'{key}_bags'] += row['bags'] or 0

    return json_response({
        'total_requests': counts['total'],
        'pending': counts['pending'],
        'approved': counts['approved'],
        'rejected': counts['rejected'],
        'approved_bags': counts['approved_bags'] or 0,
        'rejected_bags': counts['rejected_bags'] or 0,
        'approval_rate': approval_rate,
        'blood_group_stats': blood_group_stats,
        'total_donations': dmodels.BloodDonate.objects.count(),
        'donated_bags': dmodels.BloodDonate.objects.aggregate(total=Sum('unit'))['total'] or 0,
    })


@api_view(methods=('GET',), roles=ADMIN_ONLY)
def admin_pendonor_list_view(request):
    donors = dmodels.Donor.objects.select_related('user').order_by('user__first_name', 'id')
    blood_type = request.GET.get('blood_type')
    if blood_type:
        donors = donors.filter(bloodgroup=stock_service.normalize_bloodgroup(blood_type))
    return json_response([serializers.donor_to_dict(donor) for donor in donors])


@api_view(methods=('GET',), roles=ADMIN_ONLY)
def admin_user_list_view(request):
    users = User.objects.select_related('donor', 'patient').order_by('id')
    return json_response([serializers.user_to_dict(user, accounts.role_for(user)) for user in users])


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

@api_view(methods=('GET',))
def notification_list_view(request):
    queryset = models.InAppNotification.objects.filter(user=request.user)
    if request.GET.get('unread') in ('1', 'true'):
        queryset = queryset.filter(is_read=False)
    return json_response([serializers.notification_to_dict(item) for item in queryset[:100]])


@api_view(methods=('POST',))
def notification_read_view(request, pk):
    updated = models.InAppNotification.objects.filter(pk=pk, user=request.user).update(is_read=True)
    if not updated:
        raise NotFound(f"Notification {pk} not found.")
    return json_response({'id': pk, 'is_read': True})


def _queue(task, *args):
    try:
        result = task.delay(*args)
    except OperationalError as exc:
        logger.error("Could not queue %s: %s", task.name, exc)
        raise TransientFailure('Task queue is unavailable; please retry.') from exc
    return json_response({'status': 'queued', 'task_id': result.id}, status=202)


@api_view(methods=('GET',), roles=ADMIN_ONLY)
def admin_notification_status_view(request):
    return json_response(notifications.system_status())


@api_view(methods=('POST',), roles=ADMIN_ONLY)
def admin_test_email_view(request):
    data = validate(forms.NotificationEmailForm, parse_json(request))
    sent = notifications.send_test_email(data['email'])
    if not sent:
        raise TransientFailure('Test email could not be sent.')
    return json_response({'status': 'sent', 'email': data['email']})


@api_view(methods=('POST',), roles=ADMIN_ONLY)
def admin_trigger_stock_check_view(request):
    return _queue(tasks.check_stock_levels)


@api_view(methods=('POST',), roles=ADMIN_ONLY)
def admin_trigger_reminders_view(request):
    return _queue(tasks.send_donation_reminders)


@api_view(methods=('POST',), roles=ADMIN_ONLY)
def admin_trigger_weekly_summary_view(request):
    return _queue(tasks.send_weekly_summary)


@api_view(methods=('POST',), roles=ADMIN_ONLY)
def admin_send_custom_view(request):
    payload = parse_json(request)
    if payload.get('use_ai'):
        raise ValidationFailed('AI-enhanced messages are not supported.', {'use_ai': ['Not supported.']})
    data = validate(forms.CustomNotificationForm, payload)
    return _queue(tasks.send_custom_email, data['email'], data['subject'], data['message'])
