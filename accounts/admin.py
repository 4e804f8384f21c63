from django.contrib import admin

from .models import CustomUser, UserActivity


@admin.register(CustomUser)
class CustomUserAdmin(admin.ModelAdmin):
    list_display = ('email', 'full_name', 'role', 'blood_type', 'is_active', 'date_joined')
    search_fields = ('email', 'first_name', 'last_name')
    list_filter = ('role', 'is_active', 'blood_type')
    exclude = ('password',)


@admin.register(UserActivity)
class UserActivityAdmin(admin.ModelAdmin):
    list_display = ('user', 'action', 'entity_type', 'entity_id', 'ip_address', 'created_at')
    search_fields = ('user__email', 'description', 'entity_id')
    list_filter = ('action', 'entity_type')
    readonly_fields = [f.name for f in UserActivity._meta.fields]

    def has_change_permission(self, request, obj=None):
        return False
