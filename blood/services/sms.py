"""AWS SNS powered SMS notices for blood request decisions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from blood.models import BloodRequest, RequestStatus
from blood.utils.phone import normalize_phone_number


logger = logging.getLogger(__name__)


@dataclass
class SmsResult:
	"""Lightweight summary of an SMS dispatch attempt."""

	status: str
	to: str = ""
	message_id: str = ""
	reason: Optional[str] = None

	def as_dict(self) -> dict:
		return {
			"status": self.status,
			"to": self.to,
			"message_id": self.message_id,
			"reason": self.reason,
		}


def notify_request_decided(blood_request: BloodRequest, *, sns_client=None) -> SmsResult:
	"""Text the requester that their request was approved or rejected."""

	if not settings.AWS_SNS_ENABLED:
		logger.info("AWS SNS disabled; skipping decision SMS for request %s", blood_request.id)
		return SmsResult("skipped", reason="sns-disabled")

	phone = normalize_phone_number(_requester_mobile(blood_request))
	if not phone:
		logger.warning("No usable phone number for request %s", blood_request.id)
		return SmsResult("skipped", reason="no-contact")

	if sns_client is None:
		sns_client = _get_sns_client()

	message = _build_decision_message(blood_request)
	try:
		response = sns_client.publish(
			PhoneNumber=phone,
			Message=message,
			MessageAttributes=_message_attributes(),
		)
	except (BotoCoreError, ClientError) as exc:
		logger.error("Decision SMS for request %s to %s failed: %s", blood_request.id, phone, exc)
		raise

	return SmsResult("success", to=phone, message_id=str((response or {}).get("MessageId", "")))


def _get_sns_client():
	return boto3.client("sns", region_name=settings.AWS_SNS_REGION)


def _requester_mobile(blood_request: BloodRequest) -> Optional[str]:
	if blood_request.patient_id and blood_request.patient.mobile:
		return blood_request.patient.mobile
	if blood_request.request_by_donor_id and blood_request.request_by_donor.mobile:
		return blood_request.request_by_donor.mobile
	return None


def _build_decision_message(blood_request: BloodRequest) -> str:
	if blood_request.status == RequestStatus.APPROVED:
		body = (
			f"Request #{blood_request.id} approved: {blood_request.unit} bag(s) of "
			f"{blood_request.bloodgroup} for {blood_request.patient_name}. "
			"Please coordinate pickup with the blood bank."
		)
	else:
		body = f"Request #{blood_request.id} for {blood_request.patient_name} was not approved."
	if blood_request.admin_note:
		body = f"{body} Note: {blood_request.admin_note}"
	return body[:1200]


def _message_attributes():
	attributes = {
		'AWS.SNS.SMS.SMSType': {'DataType': 'String', 'StringValue': settings.AWS_SNS_SMS_TYPE},
	}
	if settings.AWS_SNS_SENDER_ID:
		attributes['AWS.SNS.SMS.SenderID'] = {
			'DataType': 'String',
			'StringValue': settings.AWS_SNS_SENDER_ID[:11],
		}
	return attributes
