"""Django app configuration for calendar_blog."""
from django.apps import AppConfig


class CalendarBlogConfig(AppConfig):
    """Configuration for the calendar blog app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "calendar_blog"
    verbose_name = "Calendar Blog"

    def ready(self):
        """Populate the plugin registries with the built-in variants."""
        from . import dao, events, permalinks, request_log  # noqa: F401
