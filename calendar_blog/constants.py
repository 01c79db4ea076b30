"""Constants shared by the domain, models and views."""
from django.db import models
from django.utils.translation import gettext_lazy as _


class State(models.TextChoices):
    """Moderation lifecycle of blog entries, comments and TrackBacks."""

    NEW = "NEW", _("New")
    PENDING = "PENDING", _("Pending")
    APPROVED = "APPROVED", _("Approved")
    REJECTED = "REJECTED", _("Rejected")


class EntryType(models.TextChoices):
    """Kinds of entry kept by the persistence layer."""

    BLOG_ENTRY = "BLOG_ENTRY", _("Blog entry")
    TEMPLATE = "TEMPLATE", _("Template")
    STATIC_PAGE = "STATIC_PAGE", _("Static page")


class BlogStatus(models.TextChoices):
    """Lifecycle of a Blog instance. STOPPED is terminal."""

    UNSTARTED = "UNSTARTED", _("Unstarted")
    STARTED = "STARTED", _("Started")
    STOPPED = "STOPPED", _("Stopped")


BLOG_OWNER_ROLE = "blog-owner"
BLOG_CONTRIBUTOR_ROLE = "blog-contributor"
