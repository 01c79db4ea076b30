"""
Post and PostCategory models for django-calendar-blog.

These rows back the ORM persistence variant; the in-memory domain objects
in calendar_blog.domain are built from them by calendar_blog.dao.orm.
"""
from django.db import models

from ..constants import EntryType, State


class PostCategory(models.Model):
    """
    Category of a blog, identified by its path.

    Paths nest: "/java/swing" is a child of "/java".
    """

    blog = models.CharField(max_length=100, db_index=True)
    category_id = models.CharField(max_length=255)
    name = models.CharField(max_length=100)
    tags = models.CharField(
        max_length=255,
        blank=True,
        help_text="Tags inherited by every entry in this category",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["blog", "category_id"]
        unique_together = ["blog", "category_id"]
        verbose_name_plural = "Post categories"

    def __str__(self):
        return f"{self.blog}:{self.category_id}"


class Post(models.Model):
    """
    Stored blog entry, template or static page.

    entry_id is the epoch millisecond timestamp of date and is unique
    within a blog.
    """

    blog = models.CharField(max_length=100, db_index=True)
    entry_id = models.CharField(max_length=20)
    entry_type = models.CharField(
        max_length=20,
        choices=EntryType.choices,
        default=EntryType.BLOG_ENTRY,
    )

    # Content
    title = models.CharField(max_length=255, blank=True)
    subtitle = models.CharField(max_length=255, blank=True)
    excerpt = models.TextField(blank=True)
    body = models.TextField(blank=True)
    author = models.CharField(max_length=150, blank=True)

    # Status
    state = models.CharField(
        max_length=20,
        choices=State.choices,
        default=State.APPROVED,
    )
    is_published = models.BooleanField(default=False)
    allow_comments = models.BooleanField(default=True)
    allow_trackbacks = models.BooleanField(default=True)

    # Taxonomy
    tags = models.CharField(max_length=255, blank=True)
    categories = models.ManyToManyField(PostCategory, related_name="posts", blank=True)

    # Timestamps
    date = models.DateTimeField(db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date"]
        unique_together = ["blog", "entry_id"]
        indexes = [
            models.Index(fields=["blog", "entry_type", "is_published", "-date"]),
        ]

    def __str__(self):
        if self.title:
            return self.title
        return f"{self.body[:50]}..." if len(self.body) > 50 else self.body

    @property
    def preview(self):
        """Return truncated body for admin display."""
        if self.excerpt:
            return self.excerpt
        if len(self.body) > 280:
            return self.body[:280] + "..."
        return self.body
