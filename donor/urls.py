from django.urls import path
from . import views

urlpatterns = [
    path('pendonor/dashboard', views.donor_dashboard_view, name='pendonor-dashboard'),
    path('pendonor/availability', views.donor_set_availability_view, name='pendonor-availability'),
    path('schedules', views.schedule_collection_view, name='schedules'),
    path('schedules/<int:pk>/cancel', views.schedule_cancel_view, name='schedule-cancel'),
    path('donor-histories', views.donor_history_list_view, name='donor-histories'),
    path('admin/donor-histories', views.admin_donor_history_create_view, name='admin-donor-histories'),
    path('admin/schedules', views.admin_schedule_list_view, name='admin-schedules'),
    path('admin/schedules/<int:pk>', views.admin_schedule_update_view, name='admin-schedule-update'),
]
