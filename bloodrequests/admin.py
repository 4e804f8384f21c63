from django.contrib import admin

from .models import BloodRequest, BloodRequirement, UnitAssignment
from .services import cancel_request


class BloodRequirementInline(admin.TabularInline):
    model = BloodRequirement
    extra = 0
    fields = ['blood_type', 'component', 'units', 'units_fulfilled', 'urgency', 'crossmatch_required']
    readonly_fields = ['units_fulfilled']


class UnitAssignmentInline(admin.TabularInline):
    model = UnitAssignment
    extra = 0
    fields = ['unit', 'blood_type', 'component', 'units', 'status', 'assigned_by', 'assigned_date', 'issued_date']
    readonly_fields = fields
    can_delete = False


@admin.register(BloodRequest)
class BloodRequestAdmin(admin.ModelAdmin):
    list_display  = ['request_id', 'recipient_name', 'recipient_type', 'priority', 'status', 'required_by', 'fulfillment_display']
    list_filter   = ['status', 'priority', 'recipient_type', 'created_at']
    search_fields = ['request_id', 'recipient__name', 'requester__email']
    ordering      = ['-created_at']
    readonly_fields = ['request_id', 'approved_by', 'approved_date', 'fulfilled_date', 'cancelled_date', 'created_at', 'updated_at']
    inlines = [BloodRequirementInline, UnitAssignmentInline]

    fieldsets = (
        ('Request Information', {
            'fields': ('request_id', 'requester', 'recipient_type', 'recipient', 'priority', 'status', 'required_by', 'notes')
        }),
        ('Decisions', {
            'fields': ('approved_by', 'approved_date', 'fulfilled_date', 'cancelled_date', 'cancellation_reason', 'rejection_reason')
        }),
        ('Logistics', {
            'fields': ('follow_up', 'transportation'),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    @admin.display(description='Fulfilled')
    def fulfillment_display(self, obj):
        return f"{obj.fulfillment_percentage}%"

    actions = ['cancel_selected']

    @admin.action(description='Cancel selected requests')
    def cancel_selected(self, request, queryset):
        cancelled = 0
        for blood_request in queryset.exclude(status='cancelled'):
            cancel_request(blood_request.pk, 'Cancelled from admin')
            cancelled += 1
        self.message_user(request, f'{cancelled} request(s) cancelled.')


@admin.register(UnitAssignment)
class UnitAssignmentAdmin(admin.ModelAdmin):
    list_display  = ['request', 'unit', 'blood_type', 'component', 'units', 'status', 'assigned_date']
    list_filter   = ['status', 'blood_type']
    search_fields = ['request__request_id', 'unit__serial_number']
    readonly_fields = ['assigned_date', 'issued_date', 'return_date']
