from django.contrib import admin

from .models import ActivityLog


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ["action", "resource", "resource_id", "user", "ip_address", "timestamp"]
    list_filter = ["action", "resource", "timestamp"]
    search_fields = ["resource_id", "user__email", "ip_address"]
    readonly_fields = ["timestamp"]
    date_hierarchy = "timestamp"

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("user")
