from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import User
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from blood.choices import BloodGroup


class Donor(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE)
    bloodgroup = models.CharField(max_length=10, choices=BloodGroup.choices)
    address = models.CharField(max_length=255, blank=True)
    mobile = models.CharField(max_length=20, blank=True)
    is_available = models.BooleanField(default=True)

    # Donation recovery tracking
    last_donated_at = models.DateField(null=True, blank=True)

    @property
    def get_name(self):
        return f"{self.user.first_name} {self.user.last_name}".strip() or self.user.username

    def __str__(self):
        return self.get_name

    @property
    def donation_recovery_days(self) -> int:
        return int(getattr(settings, "DONATION_RECOVERY_DAYS", 90))

    @property
    def next_eligible_donation_date(self):
        if not self.last_donated_at:
            return None
        return self.last_donated_at + timedelta(days=self.donation_recovery_days)

    def is_eligible(self, on=None) -> bool:
        eligible_from = self.next_eligible_donation_date
        if eligible_from is None:
            return True
        on = on or timezone.localdate()
        return on >= eligible_from

    @property
    def eligibility_label(self) -> str:
        return "Ready" if self.is_eligible() else "Waiting"


class ScheduleStatus(models.TextChoices):
    SCHEDULED = 'SCHEDULED', 'Scheduled'
    COMPLETED = 'COMPLETED', 'Completed'
    CANCELLED = 'CANCELLED', 'Cancelled'


class DonationSchedule(models.Model):
    donor = models.ForeignKey(Donor, on_delete=models.CASCADE, related_name='schedules')
    scheduled_for = models.DateTimeField()
    location = models.CharField(max_length=150)
    status = models.CharField(max_length=16, choices=ScheduleStatus.choices, default=ScheduleStatus.SCHEDULED)
    notes = models.CharField(max_length=255, blank=True)
    reminder_sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['scheduled_for', 'id']

    def __str__(self):
        return f"{self.donor.get_name} @ {self.scheduled_for:%Y-%m-%d %H:%M}"


class BloodDonate(models.Model):
    donor = models.ForeignKey(Donor, on_delete=models.CASCADE, related_name='donations')
    schedule = models.OneToOneField(
        DonationSchedule,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='donation',
    )
    bloodgroup = models.CharField(max_length=10, choices=BloodGroup.choices)
    unit = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    donated_at = models.DateField(default=timezone.localdate)
    notes = models.CharField(max_length=255, blank=True)
    recorded_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.donor.get_name} - {self.bloodgroup} - {self.donated_at}"

    class Meta:
        ordering = ['-donated_at', '-id']  # Most recent first
        verbose_name = "Blood Donation"
        verbose_name_plural = "Blood Donations"
