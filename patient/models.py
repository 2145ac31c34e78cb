from django.contrib.auth.models import User
from django.db import models

from blood.choices import BloodGroup


class Patient(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE)
    bloodgroup = models.CharField(max_length=10, choices=BloodGroup.choices, blank=True)
    address = models.CharField(max_length=255, blank=True)
    mobile = models.CharField(max_length=20, blank=True)

    @property
    def get_name(self):
        return f"{self.user.first_name} {self.user.last_name}".strip() or self.user.username

    def __str__(self):
        return self.get_name
