"""JSON API: session handling, role checks and the admin workflow endpoints."""

from unittest import mock

from django.db import DatabaseError
from django.test import TestCase, TransactionTestCase, override_settings
from django.urls import reverse
from kombu.exceptions import OperationalError

from blood.choices import BLOOD_GROUPS
from blood.models import BloodRequest, InAppNotification, RequestStatus
from blood.services import approval
from donor.models import Donor

from .helpers import PASSWORD, AccountsMixin


JSON = "application/json"


class SessionApiTests(AccountsMixin, TestCase):
	def test_login_with_email_returns_role(self):
		donor = self.create_donor(bloodgroup="O+")

		response = self.client.post(
			reverse("api-login"), {"email": donor.user.email, "password": PASSWORD}, content_type=JSON
		)

		self.assertEqual(response.status_code, 200)
		body = response.json()["user"]
		self.assertEqual(body["role"], "pendonor")
		self.assertEqual(body["blood_type"], "O+")

	def test_bad_credentials_are_401(self):
		self.create_admin()
		response = self.client.post(
			reverse("api-login"), {"username": "admin", "password": "nope"}, content_type=JSON
		)
		self.assertEqual(response.status_code, 401)
		self.assertEqual(response.json()["code"], "unauthorized")

	def test_me_requires_session_and_never_redirects(self):
		response = self.client.get(reverse("api-me"))
		self.assertEqual(response.status_code, 401)
		self.assertEqual(response["Content-Type"], JSON)

	def test_logout_ends_session(self):
		admin = self.create_admin()
		self.client.force_login(admin)

		self.assertEqual(self.client.post(reverse("api-logout")).status_code, 200)
		self.assertEqual(self.client.get(reverse("api-me")).status_code, 401)

	def test_register_pendonor(self):
		response = self.client.post(
			reverse("api-register"),
			{
				"name": "Sari Dewi",
				"email": "Sari@Example.com",
				"password": "Donor!2024x",
				"role": "pendonor",
				"blood_type": "B-",
				"phone": "081234567890",
			},
			content_type=JSON,
		)

		self.assertEqual(response.status_code, 201, response.content)
		self.assertEqual(response.json()["role"], "pendonor")
		donor = Donor.objects.get(user__username="sari@example.com")
		self.assertEqual(donor.bloodgroup, "B-")
		self.assertTrue(donor.user.groups.filter(name="DONOR").exists())

	def test_register_pendonor_needs_blood_type(self):
		response = self.client.post(
			reverse("api-register"),
			{"name": "No Type", "email": "x@example.com", "password": "Donor!2024x", "role": "pendonor"},
			content_type=JSON,
		)
		self.assertEqual(response.status_code, 400)
		self.assertIn("blood_type", response.json()["errors"])

	def test_register_rejects_duplicate_email(self):
		donor = self.create_donor()
		response = self.client.post(
			reverse("api-register"),
			{"name": "Dup", "email": donor.user.email, "password": "Donor!2024x", "role": "pemohon"},
			content_type=JSON,
		)
		self.assertEqual(response.status_code, 400)
		self.assertIn("email", response.json()["errors"])

	def test_wrong_method_is_405(self):
		response = self.client.get(reverse("api-login"))
		self.assertEqual(response.status_code, 405)
		self.assertEqual(response["Allow"], "POST")


@override_settings(STOCK_CRITICAL_MAX_BAGS=5, STOCK_LOW_MAX_BAGS=10)
class StockApiTests(AccountsMixin, TestCase):
	def setUp(self):
		self.admin = self.create_admin()
		for group in BLOOD_GROUPS:
			self.set_stock(group, 20)

	def test_stock_list_is_public_and_ordered(self):
		self.set_stock("A-", 4)

		response = self.client.get(reverse("blood-stocks"))

		self.assertEqual(response.status_code, 200)
		rows = response.json()
		self.assertEqual([row["blood_type"] for row in rows], BLOOD_GROUPS)
		a_neg = next(row for row in rows if row["blood_type"] == "A-")
		self.assertEqual(a_neg["bag_count"], 4)
		self.assertEqual(a_neg["status"], "Critical")

	def test_stock_list_filters_by_status(self):
		self.set_stock("O-", 7)
		response = self.client.get(reverse("blood-stocks"), {"status": "low"})
		self.assertEqual([row["blood_type"] for row in response.json()], ["O-"])

	def test_admin_sets_stock(self):
		self.client.force_login(self.admin)
		url = reverse("admin-blood-stock-update", args=["AB+"])

		response = self.client.put(url, {"bag_count": 3}, content_type=JSON)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.json()["bag_count"], 3)
		self.assertEqual(self.stock_units("AB+"), 3)

	def test_admin_sets_stock_with_indonesian_field(self):
		self.client.force_login(self.admin)
		url = reverse("admin-blood-stock-update", args=["O+"])

		response = self.client.put(url, {"jumlah_kantong": 9}, content_type=JSON)

		self.assertEqual(response.status_code, 200, response.content)
		self.assertEqual(self.stock_units("O+"), 9)

	def test_stock_update_validates_body(self):
		self.client.force_login(self.admin)
		url = reverse("admin-blood-stock-update", args=["AB+"])

		self.assertEqual(self.client.put(url, {"bag_count": -2}, content_type=JSON).status_code, 400)
		self.assertEqual(self.client.put(url, "not json", content_type=JSON).status_code, 400)
		self.assertEqual(
			self.client.put(reverse("admin-blood-stock-update", args=["X"]), {"bag_count": 1}, content_type=JSON).status_code,
			404,
		)

	def test_stock_update_is_admin_only(self):
		donor = self.create_donor()
		self.client.force_login(donor.user)
		url = reverse("admin-blood-stock-update", args=["A+"])

		response = self.client.put(url, {"bag_count": 50}, content_type=JSON)

		self.assertEqual(response.status_code, 403)
		self.assertEqual(self.stock_units("A+"), 20)


@override_settings(AWS_SNS_ENABLED=False)
class RequestApiTests(AccountsMixin, TestCase):
	def setUp(self):
		self.admin = self.create_admin()
		self.patient = self.create_patient()

	def _file(self, **overrides):
		payload = {"patient_name": "Budi", "blood_type": "A+", "bag_count": 2, "purpose": "Operasi"}
		payload.update(overrides)
		return self.client.post(reverse("blood-requests"), payload, content_type=JSON)

	def test_requester_files_pending_request(self):
		self.client.force_login(self.patient.user)

		response = self._file(hospital="RS Sentra Medika")

		self.assertEqual(response.status_code, 201, response.content)
		body = response.json()
		self.assertEqual(body["status"], "Pending")
		self.assertEqual(body["bag_count"], 2)
		self.assertEqual(body["requested_by"], self.patient.user.username)

	def test_request_validation(self):
		self.client.force_login(self.patient.user)
		response = self._file(bag_count=0, blood_type="C+")
		self.assertEqual(response.status_code, 400)
		self.assertEqual(set(response.json()["errors"]), {"bag_count", "blood_type"})

	def test_admin_cannot_file_requests(self):
		self.client.force_login(self.admin)
		self.assertEqual(self._file().status_code, 403)

	def test_requesters_only_see_their_own_requests(self):
		mine = self.create_request("A+", unit=1, patient=self.patient)
		self.create_request("B+", unit=1, patient=self.create_patient())
		self.client.force_login(self.patient.user)

		response = self.client.get(reverse("blood-requests"))

		self.assertEqual([row["id"] for row in response.json()], [mine.pk])

	def test_pending_queue_is_oldest_first(self):
		first = self.create_request("A+", unit=1)
		second = self.create_request("A+", unit=1)
		self.create_request("A+", unit=1, status=RequestStatus.REJECTED)
		self.client.force_login(self.admin)

		response = self.client.get(reverse("admin-blood-requests-pending"))

		self.assertEqual([row["id"] for row in response.json()], [first.pk, second.pk])


@override_settings(AWS_SNS_ENABLED=False)
class DecisionApiTests(AccountsMixin, TestCase):
	def setUp(self):
		self.admin = self.create_admin()
		self.client.force_login(self.admin)

	def test_approve_endpoint_returns_request_and_stock(self):
		self.set_stock("A+", 5)
		blood_request = self.create_request("A+", unit=5)

		response = self.client.post(reverse("admin-blood-request-approve", args=[blood_request.pk]))

		self.assertEqual(response.status_code, 200)
		body = response.json()
		self.assertEqual(body["request"]["status"], "Approved")
		self.assertEqual(body["request"]["decided_by"], "admin")
		self.assertEqual(body["stock"]["blood_type"], "A+")
		self.assertEqual(body["stock"]["bag_count"], 0)

	def test_insufficient_stock_is_409_with_reason(self):
		self.set_stock("O-", 2)
		blood_request = self.create_request("O-", unit=3)

		response = self.client.post(reverse("admin-blood-request-approve", args=[blood_request.pk]))

		self.assertEqual(response.status_code, 409)
		body = response.json()
		self.assertEqual(body["code"], "insufficient_stock")
		self.assertEqual((body["available"], body["requested"]), (2, 3))
		self.assertIn("available 2, requested 3", body["detail"])
		self.assertEqual(self.stock_units("O-"), 2)

	def test_double_approval_is_409_invalid_state(self):
		self.set_stock("A+", 10)
		blood_request = self.create_request("A+", unit=1)
		url = reverse("admin-blood-request-approve", args=[blood_request.pk])

		self.assertEqual(self.client.post(url).status_code, 200)
		response = self.client.post(url)

		self.assertEqual(response.status_code, 409)
		self.assertEqual(response.json()["code"], "invalid_state")
		self.assertEqual(self.stock_units("A+"), 9)

	def test_unknown_request_is_404(self):
		response = self.client.post(reverse("admin-blood-request-reject", args=[424242]))
		self.assertEqual(response.status_code, 404)

	def test_status_update_with_indonesian_fields(self):
		self.set_stock("B+", 3)
		blood_request = self.create_request("B+", unit=2)

		response = self.client.put(
			reverse("admin-blood-request-decision", args=[blood_request.pk]),
			{"status": "Ditolak", "catatan_admin": "stok tidak cukup"},
			content_type=JSON,
		)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.json()["request"]["admin_note"], "stok tidak cukup")
		self.assertNotIn("stock", response.json())
		self.assertEqual(self.stock_units("B+"), 3)

	def test_transient_failure_is_503_and_changes_nothing(self):
		self.set_stock("A+", 5)
		blood_request = self.create_request("A+", unit=1)

		with mock.patch("blood.services.approval.audit.record", side_effect=DatabaseError):
			response = self.client.post(reverse("admin-blood-request-approve", args=[blood_request.pk]))

		self.assertEqual(response.status_code, 503)
		self.assertEqual(BloodRequest.objects.get(pk=blood_request.pk).status, RequestStatus.PENDING)
		self.assertEqual(self.stock_units("A+"), 5)

	def test_approve_ignores_form_encoded_body(self):
		self.set_stock("B-", 4)
		blood_request = self.create_request("B-", unit=1)

		response = self.client.post(
			reverse("admin-blood-request-approve", args=[blood_request.pk]),
			"note=ok",
			content_type="application/x-www-form-urlencoded",
		)

		self.assertEqual(response.status_code, 200, response.content)
		self.assertEqual(self.stock_units("B-"), 3)

	def test_reject_with_json_note(self):
		self.set_stock("B-", 4)
		blood_request = self.create_request("B-", unit=2)

		response = self.client.post(
			reverse("admin-blood-request-reject", args=[blood_request.pk]),
			{"note": "stok tidak cukup"},
			content_type=JSON,
		)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.json()["request"]["admin_note"], "stok tidak cukup")
		self.assertEqual(self.stock_units("B-"), 4)

	def test_non_admin_gets_403(self):
		patient = self.create_patient()
		blood_request = self.create_request("A+", unit=1, patient=patient)
		self.client.force_login(patient.user)

		response = self.client.post(reverse("admin-blood-request-approve", args=[blood_request.pk]))

		self.assertEqual(response.status_code, 403)


class DashboardApiTests(AccountsMixin, TestCase):
	def setUp(self):
		self.admin = self.create_admin()
		for group in BLOOD_GROUPS:
			self.set_stock(group, 10)

	def test_dashboard_totals(self):
		self.create_donor()
		self.create_request("A+", unit=1)
		self.set_stock("A+", 2)
		self.client.force_login(self.admin)

		body = self.client.get(reverse("admin-dashboard")).json()

		self.assertEqual(body["total_pendonor"], 1)
		self.assertEqual(body["pending_requests"], 1)
		self.assertEqual(body["total_bags"], 72)
		self.assertGreaterEqual(body["critical_stock_count"], 1)

	@override_settings(AWS_SNS_ENABLED=False)
	def test_statistics_breakdown(self):
		first = self.create_request("A+", unit=2)
		second = self.create_request("A+", unit=3)
		self.create_request("O+", unit=1)
		approval.approve(first.pk, actor=self.admin)
		approval.reject(second.pk, actor=self.admin)
		self.client.force_login(self.admin)

		body = self.client.get(reverse("admin-statistics")).json()

		self.assertEqual((body["total_requests"], body["pending"]), (3, 1))
		self.assertEqual(body["approval_rate"], 50.0)
		self.assertEqual(body["blood_group_stats"]["A+"]["approved_bags"], 2)
		self.assertEqual(body["blood_group_stats"]["A+"]["rejected_bags"], 3)

	def test_user_list_shows_roles(self):
		self.create_donor()
		self.create_patient()
		self.client.force_login(self.admin)

		roles = sorted(row["role"] for row in self.client.get(reverse("admin-users")).json())

		self.assertEqual(roles, ["admin", "pemohon", "pendonor"])


class NotificationApiTests(AccountsMixin, TestCase):
	def setUp(self):
		self.admin = self.create_admin()

	def test_users_read_their_own_notifications(self):
		patient = self.create_patient()
		mine = InAppNotification.objects.create(user=patient.user, title="Hi", message="Hello")
		other = InAppNotification.objects.create(user=self.admin, title="Admin", message="Only admin")
		self.client.force_login(patient.user)

		listing = self.client.get(reverse("notifications")).json()
		self.assertEqual([row["id"] for row in listing], [mine.pk])

		self.assertEqual(self.client.post(reverse("notification-read", args=[mine.pk])).status_code, 200)
		self.assertEqual(self.client.post(reverse("notification-read", args=[other.pk])).status_code, 404)
		mine.refresh_from_db()
		self.assertTrue(mine.is_read)

	def test_trigger_stock_check_queues_task(self):
		self.client.force_login(self.admin)
		with mock.patch("blood.tasks.check_stock_levels.delay") as delay:
			delay.return_value.id = "task-1"
			response = self.client.post(reverse("admin-notifications-stock-check"))

		self.assertEqual(response.status_code, 202)
		self.assertEqual(response.json(), {"status": "queued", "task_id": "task-1"})
		delay.assert_called_once_with()

	def test_broker_outage_is_503(self):
		self.client.force_login(self.admin)
		with mock.patch("blood.tasks.send_weekly_summary.delay", side_effect=OperationalError("down")):
			response = self.client.post(reverse("admin-notifications-weekly-summary"))

		self.assertEqual(response.status_code, 503)
		self.assertEqual(response.json()["code"], "transient_failure")

	def test_send_custom_rejects_ai_flag(self):
		self.client.force_login(self.admin)
		payload = {"email": "a@example.com", "subject": "Hi", "message": "Body", "use_ai": True}

		with mock.patch("blood.tasks.send_custom_email.delay") as delay:
			response = self.client.post(reverse("admin-notifications-send-custom"), payload, content_type=JSON)

		self.assertEqual(response.status_code, 400)
		delay.assert_not_called()

	def test_send_custom_queues_email(self):
		self.client.force_login(self.admin)
		payload = {"email": "a@example.com", "subject": "Hi", "message": "Body"}

		with mock.patch("blood.tasks.send_custom_email.delay") as delay:
			delay.return_value.id = "task-2"
			response = self.client.post(reverse("admin-notifications-send-custom"), payload, content_type=JSON)

		self.assertEqual(response.status_code, 202)
		delay.assert_called_once_with("a@example.com", "Hi", "Body")


@override_settings(AWS_SNS_ENABLED=True)
class DecisionAfterCommitTests(AccountsMixin, TransactionTestCase):
	def test_broker_outage_does_not_fail_a_committed_approval(self):
		admin = self.create_admin()
		patient = self.create_patient()
		self.set_stock("A+", 5)
		blood_request = self.create_request("A+", unit=2, patient=patient)
		self.client.force_login(admin)

		with mock.patch("blood.tasks.send_request_decision_sms.delay", side_effect=OperationalError("broker down")) as delay:
			response = self.client.post(reverse("admin-blood-request-approve", args=[blood_request.pk]))

		delay.assert_called_once_with(blood_request.pk)
		self.assertEqual(response.status_code, 200, response.content)
		self.assertEqual(response.json()["request"]["status"], "Approved")
		self.assertEqual(BloodRequest.objects.get(pk=blood_request.pk).status, RequestStatus.APPROVED)
		self.assertEqual(self.stock_units("A+"), 3)
