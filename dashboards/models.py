"""Database models for folders and saved dashboards.

Rows mirror the persisted document shape used by the key/value store so both
backends round-trip the same records. Primary keys are the client-minted
string ids (`f-<ms>`, `d-<ms>`).
"""

from __future__ import annotations

from django.db import models

from widgets.codec import DashboardRecord, FolderRecord, decode_instances, encode_instances, parse_theme

THEME_CHOICES: tuple[tuple[str, str], ...] = (("light", "Light"), ("dark", "Dark"))


class Folder(models.Model):
    """A named group of dashboards."""

    id = models.CharField(primary_key=True, max_length=64)
    name = models.CharField(max_length=120)
    color = models.CharField(max_length=32, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        """Return the folder name for display contexts."""

        return self.name

    def as_record(self) -> FolderRecord:
        """Return the storage-agnostic record for this row."""

        return FolderRecord(id=self.id, name=self.name, color=self.color or None)


class Dashboard(models.Model):
    """A saved snapshot of widget instances and the theme they were saved with.

    Deleting a folder deletes its dashboards.
    """

    id = models.CharField(primary_key=True, max_length=64)
    name = models.CharField(max_length=200)
    folder = models.ForeignKey(
        Folder,
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="dashboards",
    )
    widget_instances = models.JSONField(
        default=list,
        help_text="Encoded widget instances in render order.",
    )
    theme = models.CharField(max_length=10, blank=True, default="", choices=THEME_CHOICES)
    iframe_url = models.URLField(max_length=500, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        """Return a concise display string."""

        return f"Dashboard({self.name})"

    @classmethod
    def fields_from_record(cls, record: DashboardRecord) -> dict[str, object]:
        """Return model field values for a record."""

        return {
            "name": record.name,
            "folder_id": record.folder_id,
            "widget_instances": encode_instances(record.widget_instances),
            "theme": record.theme or "",
            "iframe_url": record.iframe_url or "",
        }

    def as_record(self) -> DashboardRecord:
        """Return the storage-agnostic record for this row.

        Raises:
            ValueError: When the stored widget instances are malformed.
        """

        return DashboardRecord(
            id=self.id,
            name=self.name,
            folder_id=self.folder_id,
            widget_instances=decode_instances(self.widget_instances),
            theme=parse_theme(self.theme),
            iframe_url=self.iframe_url or None,
        )
