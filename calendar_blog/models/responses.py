"""
Comment and TrackBack models for django-calendar-blog.
"""
from django.db import models

from ..constants import State


class Comment(models.Model):
    """
    Comment on a post.

    Supports threaded replies via parent field and a moderation state.
    """

    post = models.ForeignKey(
        "calendar_blog.Post",
        on_delete=models.CASCADE,
        related_name="comments",
    )
    comment_id = models.CharField(max_length=20)
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="replies",
    )
    title = models.CharField(max_length=255, blank=True)
    body = models.TextField()
    author = models.CharField(max_length=100, blank=True)
    email = models.EmailField(blank=True)
    website = models.URLField(blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    state = models.CharField(max_length=20, choices=State.choices, default=State.PENDING)
    date = models.DateTimeField(db_index=True)

    class Meta:
        ordering = ["date"]
        unique_together = ["post", "comment_id"]
        indexes = [
            models.Index(fields=["post", "state", "date"]),
        ]

    def __str__(self):
        return f"Comment by {self.author or 'anonymous'} on {self.post}"

    @property
    def preview(self):
        """Return truncated body for admin display."""
        if len(self.body) > 100:
            return self.body[:100] + "..."
        return self.body


class TrackBack(models.Model):
    """TrackBack ping received for a post."""

    post = models.ForeignKey(
        "calendar_blog.Post",
        on_delete=models.CASCADE,
        related_name="trackbacks",
    )
    trackback_id = models.CharField(max_length=20)
    title = models.CharField(max_length=255, blank=True)
    excerpt = models.TextField(blank=True)
    url = models.URLField(max_length=500)
    blog_name = models.CharField(max_length=255, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    state = models.CharField(max_length=20, choices=State.choices, default=State.PENDING)
    date = models.DateTimeField(db_index=True)

    class Meta:
        ordering = ["date"]
        unique_together = ["post", "trackback_id"]

    def __str__(self):
        return f"TrackBack from {self.blog_name or self.url} on {self.post}"
