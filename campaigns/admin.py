from django.contrib import admin

from .models import Campaign, CampaignDonation, CampaignFeedback


class CampaignDonationInline(admin.TabularInline):
    model = CampaignDonation
    extra = 0
    fields = ['donor', 'date', 'units', 'blood_type', 'notes']


class CampaignFeedbackInline(admin.TabularInline):
    model = CampaignFeedback
    extra = 0
    fields = ['donor', 'rating', 'comments', 'date']


@admin.register(Campaign)
class CampaignAdmin(admin.ModelAdmin):
    list_display  = ['campaign_id', 'title', 'type', 'status', 'start_date', 'end_date', 'units_collected', 'target_units', 'progress_display']
    list_filter   = ['status', 'type']
    search_fields = ['campaign_id', 'title', 'location']
    ordering      = ['-start_date']
    readonly_fields = ['campaign_id', 'units_collected', 'donors_participated', 'results', 'created_at', 'updated_at']
    inlines = [CampaignDonationInline, CampaignFeedbackInline]

    @admin.display(description='Progress')
    def progress_display(self, obj):
        return f"{obj.progress_percentage}%"
