"""bloodservice URL Configuration

The JSON API lives under /api/ and is split across the blood, donor and
patient apps; Django's admin site stays at /admin/.
"""
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('blood.urls')),
    path('api/', include('donor.urls')),
    path('api/', include('patient.urls')),
]
