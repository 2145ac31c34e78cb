from django.contrib import admin
from .models import Donor, BloodDonate, DonationSchedule

@admin.register(Donor)
class DonorAdmin(admin.ModelAdmin):
    list_display = ['get_name', 'bloodgroup', 'mobile', 'last_donated_at', 'is_available']
    list_filter = ['bloodgroup', 'is_available']
    search_fields = ['user__first_name', 'user__last_name', 'user__email', 'mobile']

@admin.register(BloodDonate)
class BloodDonateAdmin(admin.ModelAdmin):
    list_display = ['donor', 'bloodgroup', 'unit', 'donated_at', 'recorded_by']
    list_filter = ['bloodgroup', 'donated_at']
    search_fields = ['donor__user__first_name', 'donor__user__last_name']

@admin.register(DonationSchedule)
class DonationScheduleAdmin(admin.ModelAdmin):
    list_display = ['donor', 'scheduled_for', 'location', 'status', 'reminder_sent_at']
    list_filter = ['status', 'scheduled_for']
    search_fields = ['donor__user__first_name', 'donor__user__last_name', 'location']
