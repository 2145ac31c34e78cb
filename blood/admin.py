from django.contrib import admin
from .models import ActionAuditLog, BloodRequest, InAppNotification, Stock

@admin.register(Stock)
class StockAdmin(admin.ModelAdmin):
    list_display = ['bloodgroup', 'unit', 'status', 'updated_at']
    # Bag counts change through the API so every change is audited.
    readonly_fields = ['bloodgroup', 'unit', 'updated_at']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

@admin.register(BloodRequest)
class BloodRequestAdmin(admin.ModelAdmin):
    list_display = ['patient_name', 'bloodgroup', 'unit', 'status', 'requested_at', 'decided_at']
    list_filter = ['bloodgroup', 'status', 'requested_at']
    search_fields = ['patient_name', 'reason', 'hospital']
    readonly_fields = ['status', 'admin_note', 'decided_at', 'decided_by']

@admin.register(ActionAuditLog)
class ActionAuditLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'action', 'entity_type', 'entity_id', 'bloodgroup', 'units', 'actor_username']
    list_filter = ['action', 'entity_type', 'bloodgroup']
    search_fields = ['actor_username', 'notes']

@admin.register(InAppNotification)
class InAppNotificationAdmin(admin.ModelAdmin):
    list_display = ['user', 'title', 'is_read', 'created_at']
    list_filter = ['is_read']
