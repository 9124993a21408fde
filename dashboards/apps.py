"""Django app configuration for saved dashboards."""

from __future__ import annotations

from django.apps import AppConfig


class DashboardsConfig(AppConfig):
    """AppConfig for folders, saved dashboards, and the dashboard session."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "dashboards"
