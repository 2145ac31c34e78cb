import random
from datetime import timedelta

from django.contrib.auth.models import User
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from faker import Faker

from blood import models as blood_models
from blood.choices import BLOOD_GROUPS
from blood.exceptions import InsufficientStock
from blood.services import accounts, approval, donations
from blood.services.stock import ensure_stock_rows
from donor import models as donor_models
from patient import models as patient_models

DEFAULT_PASSWORD = "DemoPass123!"
HOSPITALS = [
    "RS Sentra Medika Minahasa Utara",
    "RSUP Prof. Dr. R. D. Kandou",
    "RS Siloam Manado",
]
PURPOSES = ["Operasi", "Kecelakaan", "Thalassemia", "Persalinan", "Anemia berat", "Demam berdarah"]
SCHEDULE_LOCATIONS = ["Unit Donor Darah RS", "Mobil Donor Darah", "Aula Kantor Bupati"]


class Command(BaseCommand):
    help = "Generate a demo dataset with donors, requesters, stock, donations, schedules and requests"

    def add_arguments(self, parser):
        parser.add_argument("--donors", type=int, default=40, help="Number of donors to create (default 40)")
        parser.add_argument("--requesters", type=int, default=20, help="Number of requesters to create (default 20)")
        parser.add_argument("--seed", type=int, help="Random seed for deterministic runs")
        parser.add_argument("--purge", action="store_true", help="Delete existing demo accounts, requests and donations first")

    def handle(self, *args, **options):
        faker = Faker("id_ID")
        if options.get("seed") is not None:
            Faker.seed(options["seed"])
            random.seed(options["seed"])

        if options.get("purge"):
            self._purge_existing()

        ensure_stock_rows()
        admin = User.objects.filter(is_superuser=True).order_by("id").first()

        with transaction.atomic():
            self._initialize_stock()
            donors = [self._create_donor(faker) for _ in range(options["donors"])]
            patients = [self._create_patient(faker) for _ in range(options["requesters"])]
            donation_count = self._create_donations(donors, admin)
            schedule_count = self._create_schedules(donors)
            request_count, approved, rejected = self._create_requests(patients, donors, admin, faker)

        self.stdout.write(self.style.SUCCESS(
            f"Seed complete: {len(donors)} donors, {len(patients)} requesters, {donation_count} donations, "
            f"{schedule_count} schedules, {request_count} requests ({approved} approved, {rejected} rejected)."
        ))
        self.stdout.write(self.style.SUCCESS(f"Default password for generated accounts: '{DEFAULT_PASSWORD}'"))

    # ------------------------------------------------------------------
    def _purge_existing(self):
        self.stdout.write("Purging existing demo data…")
        blood_models.BloodRequest.objects.all().delete()
        donor_models.BloodDonate.objects.all().delete()
        donor_models.DonationSchedule.objects.all().delete()
        user_ids = list(donor_models.Donor.objects.values_list("user_id", flat=True))
        user_ids += list(patient_models.Patient.objects.values_list("user_id", flat=True))
        # Deleting the user cascades to donor/patient profiles
        User.objects.filter(id__in=user_ids, is_superuser=False).delete()
        self.stdout.write(self.style.WARNING("Existing demo records removed."))

    def _initialize_stock(self):
        for group in BLOOD_GROUPS:
            blood_models.Stock.objects.filter(bloodgroup=group).update(unit=random.randint(3, 30))

    def _create_user(self, faker):
        email = faker.unique.email()
        while User.objects.filter(username=email).exists():
            email = faker.unique.email()
        return email, faker.name()

    def _create_donor(self, faker):
        email, name = self._create_user(faker)
        user = accounts.register_user(
            name=name,
            email=email,
            password=DEFAULT_PASSWORD,
            role=accounts.ROLE_PENDONOR,
            bloodgroup=random.choice(BLOOD_GROUPS),
            mobile=faker.phone_number(),
            address=faker.street_address(),
        )
        return user.donor

    def _create_patient(self, faker):
        email, name = self._create_user(faker)
        user = accounts.register_user(
            name=name,
            email=email,
            password=DEFAULT_PASSWORD,
            role=accounts.ROLE_PEMOHON,
            mobile=faker.phone_number(),
            address=faker.street_address(),
        )
        return user.patient

    def _create_donations(self, donors, admin):
        total = 0
        today = timezone.localdate()
        for donor in donors:
            if random.random() < 0.5:
                continue
            donations.record_donation(
                donor.pk,
                unit=1,
                donated_at=today - timedelta(days=random.randint(0, 200)),
                notes="Demo donation",
                actor=admin,
            )
            total += 1
        return total

    def _create_schedules(self, donors):
        total = 0
        for donor in donors:
            donor.refresh_from_db(fields=["last_donated_at"])
            if not donor.is_eligible() or random.random() < 0.6:
                continue
            when = timezone.now() + timedelta(days=random.randint(1, 14), hours=random.randint(8, 15))
            donations.create_schedule(donor, scheduled_for=when, location=random.choice(SCHEDULE_LOCATIONS))
            total += 1
        return total

    def _create_requests(self, patients, donors, admin, faker):
        owners = [("patient", patient) for patient in patients]
        owners += [("request_by_donor", donor) for donor in random.sample(donors, k=min(len(donors), 8))]

        total = approved = rejected = 0
        for field, owner in owners:
            blood_request = blood_models.BloodRequest.objects.create(
                patient_name=faker.name(),
                bloodgroup=random.choice(BLOOD_GROUPS),
                unit=random.randint(1, 4),
                reason=random.choice(PURPOSES),
                hospital=random.choice(HOSPITALS),
                **{field: owner},
            )
            total += 1

            outcome = random.choices(["pending", "approve", "reject"], weights=[4, 4, 2], k=1)[0]
            if outcome == "approve":
                try:
                    approval.approve(blood_request.pk, actor=admin)
                    approved += 1
                except InsufficientStock:
                    approval.reject(blood_request.pk, "Stok tidak cukup", actor=admin)
                    rejected += 1
            elif outcome == "reject":
                approval.reject(blood_request.pk, "Data pasien belum lengkap", actor=admin)
                rejected += 1
        return total, approved, rejected
