from django.test import TestCase, override_settings
from django.urls import reverse

from blood.services import approval
from blood.tests.helpers import AccountsMixin


@override_settings(AWS_SNS_ENABLED=False)
class PatientDashboardTests(AccountsMixin, TestCase):
	def setUp(self):
		self.patient = self.create_patient()

	def test_dashboard_counts_requests_by_status(self):
		self.set_stock("A+", 10)
		approved = self.create_request("A+", unit=2, patient=self.patient)
		self.create_request("A+", unit=1, patient=self.patient)
		approval.approve(approved.pk)
		self.client.force_login(self.patient.user)

		response = self.client.get(reverse("pemohon-dashboard"))

		self.assertEqual(response.status_code, 200)
		body = response.json()
		self.assertEqual(body["request_counts"], {"Pending": 1, "Approved": 1, "Rejected": 0})
		self.assertEqual(body["profile"]["role"], "pemohon")
		self.assertEqual(len(body["notifications"]), 1)

	def test_dashboard_requires_login(self):
		self.assertEqual(self.client.get(reverse("pemohon-dashboard")).status_code, 401)

	def test_donors_are_forbidden(self):
		self.client.force_login(self.create_donor().user)
		self.assertEqual(self.client.get(reverse("pemohon-dashboard")).status_code, 403)
