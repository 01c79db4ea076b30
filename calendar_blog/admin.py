"""
Django admin configuration for calendar_blog.

Status changes go through BlogService so that each blog's calendar index,
search index and listeners stay in step with the database.
"""
from django.contrib import admin, messages

from .exceptions import BlogError
from .manager import blog_manager
from .models import Comment, Post, PostCategory, TrackBack
from .services import BlogService


def _blog_entry_for(post):
    blog = blog_manager.get_blog(post.blog)
    if blog is None:
        return None
    return BlogService().get_blog_entry(blog, post.entry_id)


class BlogServiceActionMixin:
    """Apply a BlogService operation to each selected row, reporting failures."""

    def apply(self, request, queryset, operation, verb):
        count = 0
        for row in queryset:
            target = self.domain_object(row)
            if target is None:
                self.message_user(request, f"{row} is not loaded by any blog.", messages.WARNING)
                continue
            try:
                operation(target)
            except BlogError as exc:
                self.message_user(request, f"{row}: {exc}", messages.ERROR)
                continue
            count += 1
        self.message_user(request, f"{count} {self.model._meta.verbose_name_plural} {verb}.")


@admin.register(PostCategory)
class PostCategoryAdmin(admin.ModelAdmin):
    list_display = ["category_id", "name", "blog", "tags", "created_at"]
    list_filter = ["blog"]
    search_fields = ["category_id", "name", "tags"]
    readonly_fields = ["created_at", "updated_at"]


@admin.register(Post)
class PostAdmin(BlogServiceActionMixin, admin.ModelAdmin):
    list_display = [
        "title_preview",
        "blog",
        "author",
        "entry_type",
        "state",
        "is_published",
        "date",
    ]
    list_filter = ["blog", "entry_type", "state", "is_published", "date"]
    search_fields = ["title", "body", "author", "tags"]
    filter_horizontal = ["categories"]
    date_hierarchy = "date"
    readonly_fields = ["entry_id", "created_at", "updated_at"]

    fieldsets = (
        (None, {
            "fields": ("blog", "entry_id", "entry_type", "title", "subtitle", "excerpt", "body", "author")
        }),
        ("Taxonomy", {
            "fields": ("categories", "tags")
        }),
        ("Status", {
            "fields": ("state", "is_published", "allow_comments", "allow_trackbacks")
        }),
        ("Metadata", {
            "fields": ("date", "created_at", "updated_at"),
            "classes": ("collapse",),
        }),
    )

    actions = ["publish_entries", "unpublish_entries", "approve_entries", "reject_entries"]

    def domain_object(self, row):
        return _blog_entry_for(row)

    def title_preview(self, obj):
        """Truncated title for list display."""
        if obj.title:
            return obj.title[:60] + "..." if len(obj.title) > 60 else obj.title
        return obj.body[:40] + "..." if len(obj.body) > 40 else obj.body

    title_preview.short_description = "Title"

    @admin.action(description="Publish selected entries now")
    def publish_entries(self, request, queryset):
        service = BlogService()
        self.apply(
            request, queryset,
            lambda e: service.publish_blog_entry(e, e.blog.now()),
            "published",
        )

    @admin.action(description="Unpublish selected entries")
    def unpublish_entries(self, request, queryset):
        self.apply(request, queryset, BlogService().unpublish_blog_entry, "unpublished")

    @admin.action(description="Approve selected entries")
    def approve_entries(self, request, queryset):
        service = BlogService()

        def approve(blog_entry):
            blog_entry.approve()
            service.put_blog_entry(blog_entry)

        self.apply(request, queryset, approve, "approved")

    @admin.action(description="Reject selected entries")
    def reject_entries(self, request, queryset):
        service = BlogService()

        def reject(blog_entry):
            blog_entry.reject()
            service.put_blog_entry(blog_entry)

        self.apply(request, queryset, reject, "rejected")


@admin.register(Comment)
class CommentAdmin(BlogServiceActionMixin, admin.ModelAdmin):
    list_display = ["preview", "author", "post", "state", "date"]
    list_filter = ["state", "date"]
    search_fields = ["body", "author", "post__title"]
    raw_id_fields = ["post", "parent"]
    readonly_fields = ["comment_id", "ip_address"]
    actions = ["approve_comments", "reject_comments"]

    def domain_object(self, row):
        blog_entry = _blog_entry_for(row.post)
        return blog_entry.get_comment(row.comment_id) if blog_entry else None

    @admin.action(description="Approve selected comments")
    def approve_comments(self, request, queryset):
        self.apply(request, queryset, BlogService().approve_comment, "approved")

    @admin.action(description="Reject selected comments")
    def reject_comments(self, request, queryset):
        self.apply(request, queryset, BlogService().reject_comment, "rejected")


@admin.register(TrackBack)
class TrackBackAdmin(BlogServiceActionMixin, admin.ModelAdmin):
    list_display = ["title", "blog_name", "url", "post", "state", "date"]
    list_filter = ["state", "date"]
    search_fields = ["title", "excerpt", "url", "blog_name"]
    raw_id_fields = ["post"]
    readonly_fields = ["trackback_id", "ip_address"]
    actions = ["approve_trackbacks", "reject_trackbacks"]

    def domain_object(self, row):
        blog_entry = _blog_entry_for(row.post)
        return blog_entry.get_trackback(row.trackback_id) if blog_entry else None

    @admin.action(description="Approve selected TrackBacks")
    def approve_trackbacks(self, request, queryset):
        self.apply(request, queryset, BlogService().approve_trackback, "approved")

    @admin.action(description="Reject selected TrackBacks")
    def reject_trackbacks(self, request, queryset):
        self.apply(request, queryset, BlogService().reject_trackback, "rejected")
