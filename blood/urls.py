from django.urls import path
from . import views

urlpatterns = [
    # Session
    path('csrf', views.csrf_view, name='api-csrf'),
    path('login', views.login_view, name='api-login'),
    path('logout', views.logout_view, name='api-logout'),
    path('register', views.register_view, name='api-register'),
    path('me', views.me_view, name='api-me'),

    # Stock ledger
    path('blood-stocks', views.stock_list_view, name='blood-stocks'),
    path('admin/blood-stocks/<str:blood_type>', views.admin_stock_update_view, name='admin-blood-stock-update'),

    # Request queue
    path('blood-requests', views.blood_request_collection_view, name='blood-requests'),
    path('admin/blood-requests/pending', views.admin_pending_request_view, name='admin-blood-requests-pending'),
    path('admin/blood-requests/<int:pk>', views.admin_request_decision_view, name='admin-blood-request-decision'),
    path('admin/blood-requests/<int:pk>/approve', views.admin_request_approve_view, name='admin-blood-request-approve'),
    path('admin/blood-requests/<int:pk>/reject', views.admin_request_reject_view, name='admin-blood-request-reject'),

    # Admin dashboards
    path('admin/dashboard', views.admin_dashboard_view, name='admin-dashboard'),
    path('admin/statistics', views.admin_statistics_view, name='admin-statistics'),
    path('admin/pendonors', views.admin_pendonor_list_view, name='admin-pendonors'),
    path('admin/users', views.admin_user_list_view, name='admin-users'),

    # Notifications
    path('notifications', views.notification_list_view, name='notifications'),
    path('notifications/<int:pk>/read', views.notification_read_view, name='notification-read'),
    path('admin/notifications/status', views.admin_notification_status_view, name='admin-notifications-status'),
    path('admin/notifications/test-email', views.admin_test_email_view, name='admin-notifications-test-email'),
    path('admin/notifications/trigger-stock-check', views.admin_trigger_stock_check_view, name='admin-notifications-stock-check'),
    path('admin/notifications/trigger-reminders', views.admin_trigger_reminders_view, name='admin-notifications-reminders'),
    path('admin/notifications/trigger-weekly-summary', views.admin_trigger_weekly_summary_view, name='admin-notifications-weekly-summary'),
    path('admin/notifications/send-custom', views.admin_send_custom_view, name='admin-notifications-send-custom'),
]
