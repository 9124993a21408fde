"""URL configuration for core views."""

from __future__ import annotations

from django.urls import path

from core import views

app_name = "core"

urlpatterns = [
    path("", views.index, name="index"),
    path("api/state/", views.state_api, name="state_api"),
    path("api/widgets/", views.add_widget_api, name="add_widget_api"),
    path("api/widgets/embed/", views.save_embed_api, name="save_embed_api"),
    path("api/widgets/<str:instance_id>/delete/", views.remove_widget_api, name="remove_widget_api"),
    path("api/widgets/<str:instance_id>/style/", views.update_style_api, name="update_style_api"),
    path("api/widgets/<str:instance_id>/colors/", views.update_series_color_api, name="update_series_color_api"),
    path("api/widgets/<str:instance_id>/resize/", views.resize_widget_api, name="resize_widget_api"),
    path("api/widgets/<str:instance_id>/render/", views.render_widget_api, name="render_widget_api"),
    path("api/layout/", views.layout_change_api, name="layout_change_api"),
    path("api/folders/", views.create_folder_api, name="create_folder_api"),
    path("api/folders/<str:folder_id>/", views.update_folder_api, name="update_folder_api"),
    path("api/folders/<str:folder_id>/delete/", views.delete_folder_api, name="delete_folder_api"),
    path("api/dashboards/save/", views.save_dashboard_api, name="save_dashboard_api"),
    path("api/dashboards/save-as/", views.save_dashboard_as_api, name="save_dashboard_as_api"),
    path("api/dashboards/new/", views.new_dashboard_api, name="new_dashboard_api"),
    path("api/dashboards/<str:dashboard_id>/load/", views.load_dashboard_api, name="load_dashboard_api"),
    path("api/dashboards/<str:dashboard_id>/rename/", views.rename_dashboard_api, name="rename_dashboard_api"),
    path("api/dashboards/<str:dashboard_id>/move/", views.move_dashboard_api, name="move_dashboard_api"),
    path("api/dashboards/<str:dashboard_id>/delete/", views.delete_dashboard_api, name="delete_dashboard_api"),
    path("api/dashboards/<str:dashboard_id>/window/", views.open_dashboard_window_api, name="open_dashboard_window_api"),
    path("api/theme/", views.theme_api, name="theme_api"),
]
