"""
Tests for the ORM persistence of blog entries and categories.
"""
from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.db import DatabaseError

from calendar_blog.constants import EntryType, State
from calendar_blog.dao import get_dao
from calendar_blog.dao.memory import MemoryBlogEntryDAO
from calendar_blog.dao.orm import OrmBlogEntryDAO, translate_errors
from calendar_blog.domain import Blog, BlogEntry, Category
from calendar_blog.exceptions import PersistenceError
from calendar_blog.models import Comment, Post, PostCategory, TrackBack


@pytest.fixture
def orm_blog(db, tmp_path):
    """A blog stored through the Django ORM."""
    return Blog("default", tmp_path / "orm-blog", {"timezone": "UTC"}, dao=OrmBlogEntryDAO())


def reopen(blog):
    return Blog(blog.id, blog.root, dict(blog.properties), dao=OrmBlogEntryDAO())


class TestDaoRegistry:
    """Tests for choosing a persistence variant."""

    def test_known_keys(self):
        """Test the built-in variants."""
        assert isinstance(get_dao("memory"), MemoryBlogEntryDAO)
        assert isinstance(get_dao("orm"), OrmBlogEntryDAO)

    def test_unknown_key_falls_back(self):
        """Test an unknown key gives the ORM variant."""
        assert isinstance(get_dao("cassandra"), OrmBlogEntryDAO)

    def test_database_errors_translated(self):
        """Test DatabaseError surfaces as PersistenceError."""
        with pytest.raises(PersistenceError):
            with translate_errors("Could not do it"):
                raise DatabaseError("disk full")


class TestOrmBlogEntryDAO:
    """Tests for OrmBlogEntryDAO."""

    def test_put_creates_post(self, orm_blog, service):
        """Test storing an entry writes a Post row."""
        blog_entry = BlogEntry(orm_blog, title="Stored", body="Body")
        blog_entry.tags = "django python"
        service.put_blog_entry(blog_entry)

        post = Post.objects.get(blog="default", entry_id=blog_entry.id)
        assert post.title == "Stored"
        assert post.is_published
        assert post.state == State.APPROVED
        assert post.tags == "django python"
        assert str(post) == "Stored"

    def test_entries_reloaded(self, orm_blog, service):
        """Test a reopened blog loads entries, tags and categories from rows."""
        service.add_category(orm_blog, Category("/java", "Java", tags="java"))
        blog_entry = BlogEntry(orm_blog, title="Reloaded")
        blog_entry.tags = "orm"
        blog_entry.add_category(orm_blog.get_category("/java"))
        service.put_blog_entry(blog_entry)

        reopened = reopen(orm_blog)
        loaded = reopened.get_blog_entry(blog_entry.id)

        assert loaded is not None
        assert loaded.title == "Reloaded"
        assert loaded.persistent
        assert [c.id for c in loaded.categories] == ["/java"]
        assert loaded.get_all_tag_names() == ["orm", "java"]
        assert reopened.get_tag("orm").number_of_blog_entries == 1

    def test_entry_in_unloaded_month_tagged_once(self, orm_blog, service):
        """Test storing into a month that is not loaded yet counts the entry once per tag."""
        service.put_blog_entry(
            BlogEntry(orm_blog, title="Seed", date=datetime(2020, 3, 1, 12, tzinfo=dt_timezone.utc))
        )
        reopened = reopen(orm_blog)

        blog_entry = BlogEntry(
            reopened, title="New", date=datetime(2020, 3, 5, 12, tzinfo=dt_timezone.utc),
        )
        blog_entry.tags = "python"
        service.put_blog_entry(blog_entry)

        tag = reopened.get_tag("python")
        assert tag.number_of_blog_entries == 1
        assert tag.blog_entries == [blog_entry]
        assert reopened.get_blog_for_day(2020, 3, 5).entries == [blog_entry]

    def test_years_from_published_entries(self, orm_blog, service):
        """Test years come from published entries only."""
        now = orm_blog.now()
        service.put_blog_entry(BlogEntry(orm_blog, title="Old", date=now - timedelta(days=1200)))
        service.put_blog_entry(
            BlogEntry(orm_blog, title="Old draft", date=now - timedelta(days=2000), published=False)
        )

        years = [y.year for y in OrmBlogEntryDAO().get_yearly_blogs(orm_blog)]
        assert years == [(now - timedelta(days=1200)).year]

    def test_month_query(self, orm_blog, service):
        """Test only the month's published entries are returned."""
        now = orm_blog.now()
        inside = BlogEntry(orm_blog, title="Inside", date=now.replace(day=1, hour=0, minute=0))
        service.put_blog_entry(inside)
        service.put_blog_entry(BlogEntry(orm_blog, title="Outside", date=now - timedelta(days=40)))

        entries = OrmBlogEntryDAO().get_blog_entries(orm_blog, now.year, now.month)
        assert [e.id for e in entries] == [inside.id]

    def test_remove(self, orm_blog, service):
        """Test removing an entry deletes its row."""
        blog_entry = BlogEntry(orm_blog, title="Gone")
        service.put_blog_entry(blog_entry)
        service.remove_blog_entry(blog_entry)
        assert not Post.objects.filter(entry_id=blog_entry.id).exists()

    def test_publish_replaces_row(self, orm_blog, service):
        """Test publishing with a new date moves the row to the new id."""
        now = orm_blog.now()
        draft = BlogEntry(orm_blog, title="Draft", date=now - timedelta(days=2), published=False)
        service.put_blog_entry(draft)
        old_id = draft.id

        service.publish_blog_entry(draft, now)

        assert not Post.objects.filter(entry_id=old_id).exists()
        post = Post.objects.get(entry_id=draft.id)
        assert post.is_published

    def test_drafts_templates_and_pages(self, orm_blog, service):
        """Test the three unpublished listings."""
        service.put_blog_entry(BlogEntry(orm_blog, title="Draft", published=False))
        service.put_blog_entry(BlogEntry(
            orm_blog, title="Template", entry_type=EntryType.TEMPLATE,
            date=orm_blog.now() - timedelta(minutes=1),
        ))
        service.put_blog_entry(BlogEntry(
            orm_blog, title="About", entry_type=EntryType.STATIC_PAGE,
            date=orm_blog.now() - timedelta(minutes=2),
        ))

        assert [e.title for e in orm_blog.get_draft_blog_entries()] == ["Draft"]
        assert [e.title for e in orm_blog.get_blog_entry_templates()] == ["Template"]
        assert [e.title for e in orm_blog.get_static_pages()] == ["About"]
        assert orm_blog.get_blog_entries() == []

    def test_responses_stored(self, orm_blog, service):
        """Test comments, replies and TrackBacks are written and read back."""
        blog_entry = BlogEntry(orm_blog, title="Discussed")
        service.put_blog_entry(blog_entry)
        parent = service.add_comment(
            blog_entry, "Parent", author="reader", ip_address="127.0.0.1", state=State.APPROVED,
        )
        service.add_comment(blog_entry, "Reply", parent=parent)
        service.add_trackback(blog_entry, "https://example.com/", blog_name="Example")

        assert Comment.objects.count() == 2
        assert Comment.objects.get(body="Reply").parent.body == "Parent"
        assert TrackBack.objects.get().blog_name == "Example"

        loaded = reopen(orm_blog).get_blog_entry(blog_entry.id)
        reply = next(c for c in loaded.comments if c.body == "Reply")
        assert reply.parent.body == "Parent"
        assert loaded.trackbacks[0].url == "https://example.com/"

    def test_recent_responses_after_reload(self, orm_blog, service):
        """Test approved responses are tracked when months load."""
        blog_entry = BlogEntry(orm_blog, title="Discussed")
        service.put_blog_entry(blog_entry)
        service.add_comment(blog_entry, "Approved", state=State.APPROVED)
        service.add_comment(blog_entry, "Pending")

        reopened = reopen(orm_blog)
        reopened.get_blog_for_today()
        responses = reopened.response_manager.get_recent_approved_responses()
        assert [r.body for r in responses] == ["Approved"]

    def test_categories(self, orm_blog, service):
        """Test categories are stored as rows and rebuilt as a tree."""
        service.add_category(orm_blog, Category("/java/swing", "Swing"))

        assert PostCategory.objects.filter(blog="default").count() == 1
        assert [c.id for c in reopen(orm_blog).get_categories()] == ["/", "/java", "/java/swing"]

        service.remove_category(orm_blog, orm_blog.get_category("/java/swing"))
        assert not PostCategory.objects.exists()
