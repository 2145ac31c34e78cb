from django import forms
from django.contrib.auth.models import User
from django.contrib.auth.password_validation import validate_password

from .choices import BloodGroup
from .services import accounts


class StockQuantityForm(forms.Form):
    bag_count = forms.IntegerField(min_value=0)


class BloodRequestForm(forms.Form):
    patient_name = forms.CharField(max_length=100)
    blood_type = forms.ChoiceField(choices=BloodGroup.choices)
    bag_count = forms.IntegerField(min_value=1, max_value=50)
    purpose = forms.CharField(max_length=500)
    hospital = forms.CharField(max_length=150, required=False)


class RequestDecisionForm(forms.Form):
    status = forms.CharField(max_length=20)
    note = forms.CharField(max_length=500, required=False)


class DecisionNoteForm(forms.Form):
    note = forms.CharField(max_length=500, required=False)


class LoginForm(forms.Form):
    username = forms.CharField(max_length=254, required=False)
    email = forms.CharField(max_length=254, required=False)
    password = forms.CharField()

    def clean(self):
        cleaned = super().clean()
        if not (cleaned.get('username') or cleaned.get('email')):
            raise forms.ValidationError('Provide a username or an email address.')
        return cleaned


class RegisterForm(forms.Form):
    ROLE_CHOICES = [
        (accounts.ROLE_PENDONOR, 'Pendonor'),
        (accounts.ROLE_PEMOHON, 'Pemohon'),
    ]

    name = forms.CharField(max_length=150)
    email = forms.EmailField()
    password = forms.CharField(min_length=8)
    role = forms.ChoiceField(choices=ROLE_CHOICES)
    blood_type = forms.ChoiceField(choices=BloodGroup.choices, required=False)
    phone = forms.CharField(max_length=20, required=False)
    address = forms.CharField(max_length=255, required=False)

    def clean_email(self):
        email = self.cleaned_data['email'].lower()
        if User.objects.filter(email__iexact=email).exists() or User.objects.filter(username=email).exists():
            raise forms.ValidationError('An account with this email already exists.')
        return email

    def clean(self):
        cleaned = super().clean()
        if cleaned.get('role') == accounts.ROLE_PENDONOR and not cleaned.get('blood_type'):
            self.add_error('blood_type', 'Blood type is required for donors.')
        password = cleaned.get('password')
        if password:
            try:
                validate_password(password)
            except forms.ValidationError as exc:
                self.add_error('password', exc)
        return cleaned


class NotificationEmailForm(forms.Form):
    email = forms.EmailField()


class CustomNotificationForm(forms.Form):
    email = forms.EmailField()
    subject = forms.CharField(max_length=200)
    message = forms.CharField()
