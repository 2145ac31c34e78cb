"""Account and record builders shared by the blood, donor and patient tests."""

from django.contrib.auth.models import User

from blood.models import BloodRequest, Stock
from donor.models import Donor
from patient.models import Patient


PASSWORD = "DemoPass123!"


class AccountsMixin:
	user_counter = 0

	def create_admin(self, username="admin", email="admin@example.com"):
		return User.objects.create_superuser(username=username, email=email, password=PASSWORD)

	def create_donor(self, bloodgroup="A+", mobile="081234567890", **extra):
		AccountsMixin.user_counter += 1
		user = User.objects.create_user(
			username=f"donor{AccountsMixin.user_counter}@example.com",
			email=f"donor{AccountsMixin.user_counter}@example.com",
			password=PASSWORD,
			first_name="Test",
			last_name=f"Donor{AccountsMixin.user_counter}",
		)
		return Donor.objects.create(user=user, bloodgroup=bloodgroup, address="Jl. Test", mobile=mobile, **extra)

	def create_patient(self, mobile="081298765432"):
		AccountsMixin.user_counter += 1
		user = User.objects.create_user(
			username=f"patient{AccountsMixin.user_counter}@example.com",
			email=f"patient{AccountsMixin.user_counter}@example.com",
			password=PASSWORD,
			first_name="Test",
			last_name=f"Patient{AccountsMixin.user_counter}",
		)
		return Patient.objects.create(user=user, address="Jl. Test", mobile=mobile)

	def set_stock(self, bloodgroup, units):
		# Rows are created by the post_migrate hook; only adjust them here.
		Stock.objects.filter(bloodgroup=bloodgroup).update(unit=units)

	def stock_units(self, bloodgroup):
		return Stock.objects.get(bloodgroup=bloodgroup).unit

	def create_request(self, bloodgroup="A+", unit=3, patient=None, **extra):
		return BloodRequest.objects.create(
			patient=patient,
			patient_name="Budi",
			reason="Operasi",
			bloodgroup=bloodgroup,
			unit=unit,
			**extra,
		)
