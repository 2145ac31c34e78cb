from datetime import timedelta
from unittest import mock

import redis
from django.core import mail
from django.test import TestCase, override_settings
from django.utils import timezone

from blood.choices import BLOOD_GROUPS
from blood.models import InAppNotification
from blood.services import approval, notifications
from donor.models import DonationSchedule

from .helpers import AccountsMixin


@override_settings(
	EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
	NOTIFICATION_FROM_EMAIL="bank@example.com",
	STOCK_CRITICAL_MAX_BAGS=5,
	STOCK_LOW_MAX_BAGS=10,
	AWS_SNS_ENABLED=False,
)
class NotificationServiceTests(AccountsMixin, TestCase):
	def setUp(self):
		self.admin = self.create_admin()
		for group in BLOOD_GROUPS:
			self.set_stock(group, 25)

	def test_stock_alert_is_quiet_when_everything_is_safe(self):
		result = notifications.send_stock_alert()

		self.assertEqual(result, {"status": "ok", "flagged": [], "sent": 0})
		self.assertEqual(len(mail.outbox), 0)

	def test_stock_alert_lists_flagged_groups(self):
		self.set_stock("A+", 2)
		self.set_stock("O-", 9)

		result = notifications.send_stock_alert()

		self.assertEqual(result["flagged"], ["A+", "O-"])
		self.assertEqual(result["sent"], 1)
		message = mail.outbox[0]
		self.assertEqual(message.to, ["admin@example.com"])
		self.assertEqual(message.from_email, "bank@example.com")
		self.assertIn("A+: 2 bag(s) (Critical)", message.body)

	def test_reminders_cover_the_next_day_only(self):
		now = timezone.now()
		soon = DonationSchedule.objects.create(
			donor=self.create_donor(), scheduled_for=now + timedelta(hours=3), location="PMI"
		)
		later = DonationSchedule.objects.create(
			donor=self.create_donor(), scheduled_for=now + timedelta(days=3), location="PMI"
		)

		with override_settings(DONATION_REMINDER_HOURS=24):
			self.assertEqual(notifications.send_donation_reminders(now=now), 1)
			# Already reminded bookings are not repeated.
			self.assertEqual(notifications.send_donation_reminders(now=now), 0)

		soon.refresh_from_db()
		later.refresh_from_db()
		self.assertEqual(soon.reminder_sent_at, now)
		self.assertIsNone(later.reminder_sent_at)
		self.assertEqual(len(mail.outbox), 1)
		self.assertEqual(mail.outbox[0].to, [soon.donor.user.email])
		self.assertTrue(InAppNotification.objects.filter(user=soon.donor.user, title="Donation reminder").exists())

	def test_weekly_summary_counts_decisions(self):
		approved = self.create_request("B+", unit=2)
		rejected = self.create_request("B+", unit=1)
		self.create_request("B+", unit=1)
		approval.approve(approved.pk, actor=self.admin)
		approval.reject(rejected.pk, actor=self.admin)

		summary = notifications.send_weekly_summary()

		self.assertEqual(summary["requests_received"], 3)
		self.assertEqual(summary["approved"], 1)
		self.assertEqual(summary["rejected"], 1)
		self.assertEqual(summary["bags_issued"], 2)
		self.assertEqual(summary["pending"], 1)
		self.assertEqual(summary["stocks"]["B+"], 23)
		self.assertEqual(summary["sent"], 1)
		self.assertIn("Still pending: 1", mail.outbox[0].body)

	def test_decision_notification_for_donor_requester(self):
		donor = self.create_donor()
		blood_request = self.create_request("A+", unit=1, request_by_donor=donor)

		approval.reject(blood_request.pk, "stok tidak cukup", actor=self.admin)

		notification = InAppNotification.objects.get(user=donor.user)
		self.assertEqual(notification.title, "Blood request rejected")
		self.assertIn("stok tidak cukup", notification.message)

	def test_send_test_email(self):
		self.assertEqual(notifications.send_test_email("ops@example.com"), 1)
		self.assertEqual(mail.outbox[0].subject, "Test email")

	@override_settings(CELERY_TASK_ALWAYS_EAGER=True)
	def test_system_status_in_eager_mode(self):
		self.set_stock("AB-", 1)

		status = notifications.system_status()

		self.assertTrue(status["broker_ok"])
		self.assertEqual(status["critical_stocks"], ["AB-"])
		self.assertFalse(status["sms_enabled"])

	@override_settings(CELERY_TASK_ALWAYS_EAGER=False, CELERY_BROKER_URL="redis://localhost:6399/0")
	def test_system_status_reports_broker_failure(self):
		with mock.patch("redis.Redis.from_url") as from_url:
			from_url.return_value.ping.side_effect = redis.ConnectionError("refused")
			with mock.patch("blood.services.notifications.cache") as cache:
				cache.get.return_value = None
				status = notifications.system_status()

		self.assertFalse(status["broker_ok"])
		self.assertIn("refused", status["broker_error"])
