"""Admin registrations for folders and saved dashboards."""

from __future__ import annotations

from django.contrib import admin

from dashboards.models import Dashboard, Folder


class DashboardInline(admin.TabularInline):
    """Read-only listing of a folder's dashboards."""

    model = Dashboard
    fields = ("id", "name", "theme", "updated_at")
    readonly_fields = fields
    extra = 0
    can_delete = False
    show_change_link = True


@admin.register(Folder)
class FolderAdmin(admin.ModelAdmin):
    """Folders with their dashboards inline."""

    list_display = ("name", "id", "color", "created_at")
    search_fields = ("name",)
    inlines = (DashboardInline,)


@admin.register(Dashboard)
class DashboardAdmin(admin.ModelAdmin):
    """Saved dashboards; widget instances are edited as raw JSON."""

    list_display = ("name", "id", "folder", "theme", "updated_at")
    list_filter = ("theme", "folder")
    search_fields = ("name",)
    readonly_fields = ("created_at", "updated_at")
