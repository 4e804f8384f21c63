from django.contrib import admin

from .models import BloodUnit


@admin.register(BloodUnit)
class BloodUnitAdmin(admin.ModelAdmin):
    list_display  = ['serial_number', 'blood_type', 'component', 'units', 'location', 'status', 'expiration_date', 'is_safe_display']
    list_filter   = ['status', 'blood_type', 'component', 'location']
    search_fields = ['serial_number', 'batch_number', 'donor__donor_id']
    ordering      = ['expiration_date']
    readonly_fields = ['serial_number', 'issued_date', 'issued_by', 'return_date', 'created_at', 'updated_at']

    @admin.display(boolean=True, description='Safe')
    def is_safe_display(self, obj):
        return obj.is_safe()

    def has_delete_permission(self, request, obj=None):
        return False
