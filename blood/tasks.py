import logging

from celery import shared_task

from blood import models
from blood.services import notifications
from blood.services import sms as sms_service


logger = logging.getLogger(__name__)


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def send_request_decision_sms(self, blood_request_id: int) -> dict:
    blood_request = models.BloodRequest.objects.select_related(
        'patient', 'request_by_donor'
    ).get(pk=blood_request_id)
    result = sms_service.notify_request_decided(blood_request)
    return result.as_dict()


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def check_stock_levels(self) -> dict:
    return notifications.send_stock_alert()


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def send_donation_reminders(self) -> int:
    return notifications.send_donation_reminders()


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def send_weekly_summary(self) -> dict:
    return notifications.send_weekly_summary()


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def send_custom_email(self, email: str, subject: str, message: str) -> int:
    sent = notifications.send_custom(email, subject, message)
    logger.info("Custom notification to %s sent=%s", email, sent)
    return sent
