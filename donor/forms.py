from django import forms

from .models import ScheduleStatus


class DonationScheduleForm(forms.Form):
    scheduled_for = forms.DateTimeField()
    location = forms.CharField(max_length=150)
    notes = forms.CharField(max_length=255, required=False)


class ScheduleStatusForm(forms.Form):
    status = forms.ChoiceField(choices=[
        (ScheduleStatus.COMPLETED, 'Completed'),
        (ScheduleStatus.CANCELLED, 'Cancelled'),
    ])
    notes = forms.CharField(max_length=255, required=False)


class DonorHistoryForm(forms.Form):
    donor_id = forms.IntegerField(min_value=1)
    bag_count = forms.IntegerField(min_value=1, max_value=5, required=False)
    donated_at = forms.DateField(required=False)
    schedule_id = forms.IntegerField(min_value=1, required=False)
    notes = forms.CharField(max_length=255, required=False)


class AvailabilityForm(forms.Form):
    is_available = forms.BooleanField(required=False)
