"""
Persistence through the Django ORM.
"""
from contextlib import contextmanager
from datetime import datetime

from django.db import DatabaseError, transaction

from ..constants import EntryType
from ..domain.categories import Category, CategoryBuilder
from ..domain.entries import BlogEntry, Comment, TrackBack
from ..domain.timeline import YearlyBlog
from ..exceptions import PersistenceError
from ..models import Comment as CommentRow
from ..models import Post, PostCategory
from ..models import TrackBack as TrackBackRow
from . import BlogEntryDAO


@contextmanager
def translate_errors(message):
    """Re-raise database errors as PersistenceError."""
    try:
        yield
    except DatabaseError as exc:
        raise PersistenceError(f"{message}: {exc}") from exc


class OrmBlogEntryDAO(BlogEntryDAO):
    """Reads and writes Post, PostCategory, Comment and TrackBack rows."""

    def _posts(self, blog, entry_type=EntryType.BLOG_ENTRY):
        return (
            Post.objects.filter(blog=blog.id, entry_type=entry_type)
            .prefetch_related("categories", "comments", "trackbacks")
        )

    def _to_blog_entry(self, blog, post):
        blog_entry = BlogEntry(
            blog,
            title=post.title,
            body=post.body,
            date=post.date,
            author=post.author,
            entry_type=post.entry_type,
            state=post.state,
            published=post.is_published,
        )
        blog_entry.subtitle = post.subtitle
        blog_entry.excerpt = post.excerpt
        blog_entry.tags = post.tags
        blog_entry.allow_comments = post.allow_comments
        blog_entry.allow_trackbacks = post.allow_trackbacks

        for row in post.categories.all():
            category = blog.get_category(row.category_id)
            if category is not None:
                blog_entry.add_category(category)

        comment_ids = {row.pk: row.comment_id for row in post.comments.all()}
        for row in post.comments.all():
            blog_entry.comments.append(Comment(
                blog_entry,
                body=row.body,
                author=row.author,
                email=row.email,
                website=row.website,
                parent_id=comment_ids.get(row.parent_id),
                title=row.title,
                ip_address=row.ip_address or "",
                date=row.date,
                state=row.state,
            ))

        for row in post.trackbacks.all():
            blog_entry.trackbacks.append(TrackBack(
                blog_entry,
                url=row.url,
                excerpt=row.excerpt,
                blog_name=row.blog_name,
                title=row.title,
                ip_address=row.ip_address or "",
                date=row.date,
                state=row.state,
            ))

        blog_entry.mark_saved()
        return blog_entry

    def get_yearly_blogs(self, blog):
        with translate_errors(f"Could not read years of {blog.id}"):
            dates = list(
                Post.objects.filter(
                    blog=blog.id,
                    entry_type=EntryType.BLOG_ENTRY,
                    is_published=True,
                ).datetimes("date", "year", tzinfo=blog.timezone)
            )
        return [YearlyBlog(blog, d.year, loaded=False) for d in dates]

    def get_blog_entries(self, blog, year, month):
        start = datetime(year, month, 1, tzinfo=blog.timezone)
        if month == 12:
            end = datetime(year + 1, 1, 1, tzinfo=blog.timezone)
        else:
            end = datetime(year, month + 1, 1, tzinfo=blog.timezone)

        with translate_errors(f"Could not read entries of {blog.id} for {year}-{month:02d}"):
            posts = list(
                self._posts(blog).filter(is_published=True, date__gte=start, date__lt=end)
            )
        return [self._to_blog_entry(blog, post) for post in posts]

    def get_blog_entry(self, blog, entry_id):
        with translate_errors(f"Could not read entry {entry_id} of {blog.id}"):
            post = (
                Post.objects.filter(blog=blog.id, entry_id=entry_id)
                .prefetch_related("categories", "comments", "trackbacks")
                .first()
            )
        if post is None:
            return None
        return self._to_blog_entry(blog, post)

    def put_blog_entry(self, blog_entry):
        blog = blog_entry.blog
        with translate_errors(f"Could not store entry {blog_entry.id} of {blog.id}"):
            with transaction.atomic():
                post, _ = Post.objects.update_or_create(
                    blog=blog.id,
                    entry_id=blog_entry.id,
                    defaults={
                        "entry_type": blog_entry.entry_type,
                        "title": blog_entry.title,
                        "subtitle": blog_entry.subtitle,
                        "excerpt": blog_entry.excerpt,
                        "body": blog_entry.body,
                        "author": blog_entry.author,
                        "state": blog_entry.state,
                        "is_published": blog_entry.published,
                        "allow_comments": blog_entry.allow_comments,
                        "allow_trackbacks": blog_entry.allow_trackbacks,
                        "tags": blog_entry.tags,
                        "date": blog_entry.date,
                    },
                )
                post.categories.set(
                    PostCategory.objects.filter(
                        blog=blog.id,
                        category_id__in=[c.id for c in blog_entry.categories],
                    )
                )

                # Responses are rewritten with the entry, parents first.
                post.comments.all().delete()
                rows = {}
                for comment in sorted(blog_entry.comments, key=lambda c: c.date):
                    rows[comment.id] = CommentRow.objects.create(
                        post=post,
                        comment_id=comment.id,
                        parent=rows.get(comment.parent_id),
                        title=comment.title,
                        body=comment.body,
                        author=comment.author,
                        email=comment.email,
                        website=comment.website,
                        ip_address=comment.ip_address or None,
                        state=comment.state,
                        date=comment.date,
                    )

                post.trackbacks.all().delete()
                TrackBackRow.objects.bulk_create([
                    TrackBackRow(
                        post=post,
                        trackback_id=trackback.id,
                        title=trackback.title,
                        excerpt=trackback.excerpt,
                        url=trackback.url,
                        blog_name=trackback.blog_name,
                        ip_address=trackback.ip_address or None,
                        state=trackback.state,
                        date=trackback.date,
                    )
                    for trackback in blog_entry.trackbacks
                ])

    def remove_blog_entry(self, blog_entry):
        blog = blog_entry.blog
        with translate_errors(f"Could not remove entry {blog_entry.id} of {blog.id}"):
            Post.objects.filter(blog=blog.id, entry_id=blog_entry.id).delete()

    def _load(self, blog, queryset, message):
        with translate_errors(message):
            posts = list(queryset)
        return [self._to_blog_entry(blog, post) for post in posts]

    def get_draft_blog_entries(self, blog):
        return self._load(
            blog,
            self._posts(blog).filter(is_published=False),
            f"Could not read drafts of {blog.id}",
        )

    def get_blog_entry_templates(self, blog):
        return self._load(
            blog,
            self._posts(blog, EntryType.TEMPLATE),
            f"Could not read templates of {blog.id}",
        )

    def get_static_pages(self, blog):
        return self._load(
            blog,
            self._posts(blog, EntryType.STATIC_PAGE),
            f"Could not read static pages of {blog.id}",
        )

    def get_categories(self, blog):
        with translate_errors(f"Could not read categories of {blog.id}"):
            rows = list(PostCategory.objects.filter(blog=blog.id).order_by("category_id"))

        builder = CategoryBuilder()
        for row in rows:
            builder.add_category(Category(row.category_id, row.name, row.tags))
        return builder.root

    def add_category(self, blog, category):
        with translate_errors(f"Could not store category {category.id} of {blog.id}"):
            PostCategory.objects.update_or_create(
                blog=blog.id,
                category_id=category.id,
                defaults={"name": category.name, "tags": category.tags},
            )

    def remove_category(self, blog, category):
        with translate_errors(f"Could not remove category {category.id} of {blog.id}"):
            PostCategory.objects.filter(blog=blog.id, category_id=category.id).delete()
