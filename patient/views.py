from django.db.models import Count

from blood import models as bmodels
from blood import serializers
from blood.services import accounts
from blood.services import requests as request_service
from blood.services import stock as stock_service
from blood.utils.api import api_view, json_response


@api_view(methods=('GET',), roles=(accounts.ROLE_PEMOHON,))
def patient_dashboard_view(request):
    my_requests = request_service.requests_visible_to(request.user)
    by_status = {row['status']: row['total'] for row in my_requests.values('status').annotate(total=Count('id'))}
    notifications = bmodels.InAppNotification.objects.filter(user=request.user)[:10]

    return json_response({
        'profile': serializers.user_to_dict(request.user, request.role),
        'stocks': [serializers.stock_to_dict(stock) for stock in stock_service.list_stocks()],
        'requests': [serializers.request_to_dict(item) for item in my_requests[:20]],
        'request_counts': {
            status: by_status.get(status, 0) for status in bmodels.RequestStatus.values
        },
        'notifications': [serializers.notification_to_dict(item) for item in notifications],
    })
