from django.urls import path
from . import views

urlpatterns = [
    path('pemohon/dashboard', views.patient_dashboard_view, name='pemohon-dashboard'),
]
