from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from patient import models as pmodels
from donor import models as dmodels

from .choices import BloodGroup


class StockStatus(models.TextChoices):
    CRITICAL = 'Critical', 'Critical'
    LOW = 'Low', 'Low'
    SAFE = 'Safe', 'Safe'


class Stock(models.Model):
    bloodgroup = models.CharField(max_length=10, choices=BloodGroup.choices, unique=True)
    unit = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return self.bloodgroup

    @staticmethod
    def status_for(units: int) -> str:
        """Classify a bag count against the configured thresholds."""

        if units <= settings.STOCK_CRITICAL_MAX_BAGS:
            return StockStatus.CRITICAL
        if units <= settings.STOCK_LOW_MAX_BAGS:
            return StockStatus.LOW
        return StockStatus.SAFE

    @property
    def status(self) -> str:
        return self.status_for(self.unit)


class RequestStatus(models.TextChoices):
    PENDING = 'Pending', 'Pending'
    APPROVED = 'Approved', 'Approved'
    REJECTED = 'Rejected', 'Rejected'


class BloodRequest(models.Model):
    patient = models.ForeignKey(pmodels.Patient, null=True, blank=True, on_delete=models.CASCADE)
    request_by_donor = models.ForeignKey(dmodels.Donor, null=True, blank=True, on_delete=models.CASCADE)
    patient_name = models.CharField(max_length=100)
    reason = models.CharField(max_length=500)
    hospital = models.CharField(max_length=150, blank=True)
    bloodgroup = models.CharField(max_length=10, choices=BloodGroup.choices)
    unit = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    status = models.CharField(max_length=20, choices=RequestStatus.choices, default=RequestStatus.PENDING)
    admin_note = models.CharField(max_length=500, blank=True)
    requested_at = models.DateTimeField(auto_now_add=True)
    decided_at = models.DateTimeField(null=True, blank=True)
    decided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='decided_blood_requests',
    )

    class Meta:
        ordering = ['-requested_at', '-id']

    def __str__(self):
        return f"{self.patient_name} - {self.bloodgroup}"

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    @property
    def requester_user(self):
        if self.patient_id:
            return self.patient.user
        if self.request_by_donor_id:
            return self.request_by_donor.user
        return None


class ActionAuditLog(models.Model):
    class Action(models.TextChoices):
        APPROVE_REQUEST = 'APPROVE_REQUEST', 'Approve Request'
        REJECT_REQUEST = 'REJECT_REQUEST', 'Reject Request'
        RECORD_DONATION = 'RECORD_DONATION', 'Record Donation'
        SET_STOCK = 'SET_STOCK', 'Set Stock'

    class EntityType(models.TextChoices):
        REQUEST = 'REQUEST', 'Blood Request'
        DONATION = 'DONATION', 'Blood Donation'
        STOCK = 'STOCK', 'Blood Stock'

    action = models.CharField(max_length=32, choices=Action.choices)
    entity_type = models.CharField(max_length=16, choices=EntityType.choices)
    entity_id = models.PositiveIntegerField(db_index=True)
    bloodgroup = models.CharField(max_length=10, blank=True)
    units = models.IntegerField(default=0)
    status_before = models.CharField(max_length=20, blank=True)
    status_after = models.CharField(max_length=20, blank=True)
    actor = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL)
    actor_username = models.CharField(max_length=150, blank=True)
    notes = models.CharField(max_length=500, blank=True)
    payload = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name = 'Action Audit Log'
        verbose_name_plural = 'Action Audit Logs'

    def __str__(self):
        return f"{self.action} {self.entity_type}#{self.entity_id}"


class InAppNotification(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=120)
    message = models.TextField()
    is_read = models.BooleanField(default=False)
    related_request = models.ForeignKey(BloodRequest, null=True, blank=True, on_delete=models.SET_NULL)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return self.title
