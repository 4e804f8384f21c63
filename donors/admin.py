from django.contrib import admin

from .models import Donor, DonationRecord
from .services import update_eligibility


class DonationRecordInline(admin.TabularInline):
    model = DonationRecord
    extra = 0
    fields = ['date', 'units', 'location', 'campaign', 'status']
    readonly_fields = ['date', 'units', 'location', 'campaign', 'status']
    can_delete = False


@admin.register(Donor)
class DonorAdmin(admin.ModelAdmin):
    list_display   = ['donor_id', 'full_name', 'blood_type', 'eligibility_status', 'total_donations', 'last_donation', 'can_donate_display']
    list_filter    = ['blood_type', 'eligibility_status', 'is_active']
    search_fields  = ['donor_id', 'user__first_name', 'user__last_name', 'user__email']
    ordering       = ['-created_at']
    readonly_fields = ['donor_id', 'total_donations', 'total_units', 'last_donation', 'next_eligible_donation', 'created_at', 'updated_at']
    inlines = [DonationRecordInline]

    fieldsets = (
        ('Identity', {
            'fields': ('user', 'donor_id', 'blood_type', 'is_active')
        }),
        ('Eligibility', {
            'fields': ('eligibility_status', 'ineligibility_reason', 'ineligibility_notes', 'last_donation', 'next_eligible_donation')
        }),
        ('Donation Stats', {
            'fields': ('total_donations', 'total_units')
        }),
        ('Details', {
            'fields': ('contact_info', 'emergency_contact', 'medical_info', 'preferences', 'notes'),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    @admin.display(boolean=True, description='Can Donate Now')
    def can_donate_display(self, obj):
        return obj.can_donate

    actions = ['mark_eligible']

    @admin.action(description='Mark selected donors as eligible')
    def mark_eligible(self, request, queryset):
        updated = 0
        for donor in queryset.exclude(eligibility_status='permanent'):
            update_eligibility(donor.pk, 'eligible')
            updated += 1
        self.message_user(request, f'{updated} donor(s) marked as eligible.')


@admin.register(DonationRecord)
class DonationRecordAdmin(admin.ModelAdmin):
    list_display  = ['donor', 'date', 'units', 'location', 'campaign', 'status']
    list_filter   = ['status', 'date']
    search_fields = ['donor__donor_id', 'donor__user__email', 'location']
    ordering      = ['-date']
    readonly_fields = ['created_at']
