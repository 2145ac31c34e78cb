from datetime import datetime, time, timedelta

from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from blood.exceptions import InvalidState, NotFound, ValidationFailed
from blood.models import ActionAuditLog
from blood.services import donations
from blood.tests.helpers import AccountsMixin
from donor import models as dmodels


JSON = "application/json"


@override_settings(DONATION_RECOVERY_DAYS=90)
class DonorEligibilityTests(AccountsMixin, TestCase):
	def test_new_donor_is_ready(self):
		donor = self.create_donor()
		self.assertTrue(donor.is_eligible())
		self.assertIsNone(donor.next_eligible_donation_date)
		self.assertEqual(donor.eligibility_label, "Ready")

	def test_recovery_period_blocks_until_day_ninety(self):
		today = timezone.localdate()
		donor = self.create_donor(last_donated_at=today - timedelta(days=30))

		self.assertEqual(donor.next_eligible_donation_date, today + timedelta(days=60))
		self.assertFalse(donor.is_eligible())
		self.assertTrue(donor.is_eligible(on=today + timedelta(days=60)))
		self.assertEqual(donor.eligibility_label, "Waiting")


class RecordDonationTests(AccountsMixin, TestCase):
	def setUp(self):
		self.admin = self.create_admin()
		self.donor = self.create_donor(bloodgroup="O-")
		self.set_stock("O-", 2)

	def test_donation_adds_bags_and_updates_donor(self):
		donation = donations.record_donation(self.donor.pk, unit=1, actor=self.admin)

		self.assertEqual(self.stock_units("O-"), 3)
		self.assertEqual(donation.bloodgroup, "O-")
		self.assertEqual(donation.recorded_by, self.admin)
		self.donor.refresh_from_db()
		self.assertEqual(self.donor.last_donated_at, timezone.localdate())
		self.assertTrue(
			ActionAuditLog.objects.filter(action=ActionAuditLog.Action.RECORD_DONATION, entity_id=donation.pk).exists()
		)

	def test_donation_completes_the_schedule(self):
		schedule = donations.create_schedule(
			self.donor, scheduled_for=timezone.now() + timedelta(hours=2), location="PMI"
		)

		donation = donations.record_donation(self.donor.pk, schedule_id=schedule.pk, actor=self.admin)

		schedule.refresh_from_db()
		self.assertEqual(schedule.status, dmodels.ScheduleStatus.COMPLETED)
		self.assertEqual(schedule.donation, donation)

	def test_older_donation_keeps_latest_date(self):
		today = timezone.localdate()
		donations.record_donation(self.donor.pk, donated_at=today)
		donations.record_donation(self.donor.pk, donated_at=today - timedelta(days=200))

		self.donor.refresh_from_db()
		self.assertEqual(self.donor.last_donated_at, today)
		self.assertEqual(self.stock_units("O-"), 4)

	def test_future_date_is_rejected(self):
		with self.assertRaises(ValidationFailed):
			donations.record_donation(self.donor.pk, donated_at=timezone.localdate() + timedelta(days=1))
		self.assertEqual(self.stock_units("O-"), 2)

	def test_unknown_donor(self):
		with self.assertRaises(NotFound):
			donations.record_donation(999999)

	def test_closed_schedule_cannot_be_reused(self):
		schedule = dmodels.DonationSchedule.objects.create(
			donor=self.donor,
			scheduled_for=timezone.now(),
			location="PMI",
			status=dmodels.ScheduleStatus.CANCELLED,
		)
		with self.assertRaises(InvalidState):
			donations.record_donation(self.donor.pk, schedule_id=schedule.pk)
		self.assertEqual(self.stock_units("O-"), 2)


@override_settings(DONATION_RECOVERY_DAYS=90)
class ScheduleTests(AccountsMixin, TestCase):
	def setUp(self):
		self.donor = self.create_donor()
		self.when = timezone.now() + timedelta(days=3)

	def test_create_and_cancel(self):
		schedule = donations.create_schedule(self.donor, scheduled_for=self.when, location="PMI")
		self.assertEqual(schedule.status, dmodels.ScheduleStatus.SCHEDULED)

		cancelled = donations.cancel_schedule(self.donor, schedule.pk)
		self.assertEqual(cancelled.status, dmodels.ScheduleStatus.CANCELLED)
		with self.assertRaises(InvalidState):
			donations.cancel_schedule(self.donor, schedule.pk)

	def test_past_booking_is_invalid(self):
		with self.assertRaises(ValidationFailed):
			donations.create_schedule(self.donor, scheduled_for=timezone.now() - timedelta(hours=1), location="PMI")

	def test_one_open_booking_at_a_time(self):
		donations.create_schedule(self.donor, scheduled_for=self.when, location="PMI")
		with self.assertRaises(InvalidState):
			donations.create_schedule(self.donor, scheduled_for=self.when + timedelta(days=1), location="PMI")

	def test_booking_inside_recovery_period(self):
		self.donor.last_donated_at = timezone.localdate() - timedelta(days=10)
		self.donor.save()
		with self.assertRaises(InvalidState):
			donations.create_schedule(self.donor, scheduled_for=self.when, location="PMI")

	def test_other_donor_cannot_cancel(self):
		schedule = donations.create_schedule(self.donor, scheduled_for=self.when, location="PMI")
		with self.assertRaises(NotFound):
			donations.cancel_schedule(self.create_donor(), schedule.pk)

	def test_admin_status_update(self):
		schedule = donations.create_schedule(self.donor, scheduled_for=self.when, location="PMI")

		updated = donations.update_schedule_status(schedule.pk, dmodels.ScheduleStatus.COMPLETED, notes="done")

		self.assertEqual(updated.status, dmodels.ScheduleStatus.COMPLETED)
		self.assertEqual(updated.notes, "done")
		with self.assertRaises(ValidationFailed):
			donations.update_schedule_status(schedule.pk, dmodels.ScheduleStatus.SCHEDULED)

	def test_schedules_this_week_skips_cancelled(self):
		today = timezone.localdate()
		monday = today - timedelta(days=today.weekday())
		at_noon = timezone.make_aware(datetime.combine(monday, time(12, 0)))
		dmodels.DonationSchedule.objects.create(donor=self.donor, scheduled_for=at_noon, location="PMI")
		dmodels.DonationSchedule.objects.create(
			donor=self.create_donor(),
			scheduled_for=at_noon,
			location="PMI",
			status=dmodels.ScheduleStatus.CANCELLED,
		)
		dmodels.DonationSchedule.objects.create(
			donor=self.create_donor(), scheduled_for=at_noon + timedelta(days=7), location="PMI"
		)

		self.assertEqual(donations.schedules_this_week(today), 1)


class DonorApiTests(AccountsMixin, TestCase):
	def setUp(self):
		self.admin = self.create_admin()
		self.donor = self.create_donor(bloodgroup="B+")
		self.set_stock("B+", 5)

	def test_donor_dashboard(self):
		self.client.force_login(self.donor.user)

		response = self.client.get(reverse("pendonor-dashboard"))

		self.assertEqual(response.status_code, 200)
		body = response.json()
		self.assertEqual(body["profile"]["blood_type"], "B+")
		self.assertEqual(body["total_donations"], 0)
		self.assertIsNone(body["next_schedule"])
		self.assertEqual(len(body["stocks"]), 8)

	def test_dashboard_is_donor_only(self):
		self.client.force_login(self.admin)
		self.assertEqual(self.client.get(reverse("pendonor-dashboard")).status_code, 403)

	def test_toggle_availability(self):
		self.client.force_login(self.donor.user)

		response = self.client.put(reverse("pendonor-availability"), {"is_available": False}, content_type=JSON)

		self.assertEqual(response.status_code, 200)
		self.donor.refresh_from_db()
		self.assertFalse(self.donor.is_available)

	def test_book_and_cancel_schedule(self):
		self.client.force_login(self.donor.user)
		when = (timezone.now() + timedelta(days=2)).isoformat()

		response = self.client.post(reverse("schedules"), {"scheduled_for": when, "location": "PMI Manado"}, content_type=JSON)
		self.assertEqual(response.status_code, 201, response.content)
		schedule_id = response.json()["id"]

		second = self.client.post(reverse("schedules"), {"scheduled_for": when, "location": "PMI Manado"}, content_type=JSON)
		self.assertEqual(second.status_code, 409)

		cancel = self.client.post(reverse("schedule-cancel", args=[schedule_id]))
		self.assertEqual(cancel.json()["status"], "CANCELLED")

	def test_admin_records_donation(self):
		self.client.force_login(self.admin)

		response = self.client.post(
			reverse("admin-donor-histories"),
			{"donor_id": self.donor.pk, "bag_count": 2, "notes": "walk-in"},
			content_type=JSON,
		)

		self.assertEqual(response.status_code, 201, response.content)
		body = response.json()
		self.assertEqual(body["donation"]["bag_count"], 2)
		self.assertEqual(body["stock"]["bag_count"], 7)

	def test_donor_sees_only_own_history(self):
		other = self.create_donor(bloodgroup="B+")
		donations.record_donation(self.donor.pk)
		donations.record_donation(other.pk)
		self.client.force_login(self.donor.user)

		rows = self.client.get(reverse("donor-histories")).json()

		self.assertEqual([row["donor_id"] for row in rows], [self.donor.pk])

	def test_admin_schedule_list_and_update(self):
		schedule = donations.create_schedule(
			self.donor, scheduled_for=timezone.now() + timedelta(days=1), location="PMI"
		)
		self.client.force_login(self.admin)

		listing = self.client.get(reverse("admin-schedules"), {"status": "scheduled"}).json()
		self.assertEqual([row["id"] for row in listing], [schedule.pk])

		response = self.client.put(
			reverse("admin-schedule-update", args=[schedule.pk]), {"status": "CANCELLED"}, content_type=JSON
		)
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.json()["status"], "CANCELLED")
