"""
Tests for BlogService: storing, publishing and responses.
"""
from datetime import timedelta

import pytest

from calendar_blog.constants import State
from calendar_blog.domain import BlogEntry
from calendar_blog.events import LISTENER_REGISTRY, BlogEntryListener, CommentEvent
from calendar_blog.exceptions import PersistenceError


class RecordingListener(BlogEntryListener):
    def __init__(self):
        self.events = []

    def _record(self, event):
        self.events.append(event.type)

    blog_entry_added = blog_entry_removed = blog_entry_changed = _record
    blog_entry_published = blog_entry_unpublished = _record
    blog_entry_approved = blog_entry_rejected = _record


@pytest.fixture
def recorder(tmp_path, dao):
    """A blog with a listener recording every blog entry event."""
    from calendar_blog.domain import Blog

    LISTENER_REGISTRY["recorder"] = RecordingListener
    blog = Blog("default", tmp_path / "blog", {"timezone": "UTC", "blog_entry_listeners": "recorder"}, dao=dao)
    yield blog, blog.event_listener_list.blog_entry_listeners[0]
    LISTENER_REGISTRY.pop("recorder", None)


class FailingDAO:
    """Wraps a DAO, failing every call named in fail."""

    def __init__(self, dao, *fail):
        self.dao = dao
        self.fail = set(fail)

    def __getattr__(self, name):
        if name in self.fail:
            def failing(*args, **kwargs):
                raise PersistenceError(f"{name} failed")
            return failing
        return getattr(self.dao, name)


class TestPutBlogEntry:
    """Tests for storing entries and the events fired."""

    def test_new_published_entry(self, recorder, service):
        """Test a new published entry fires added then published."""
        blog, listener = recorder
        service.put_blog_entry(BlogEntry(blog, title="New"))
        assert listener.events == ["blog_entry_added", "blog_entry_published"]

    def test_unpublish_and_republish(self, recorder, service):
        """Test publish state changes fire their events."""
        blog, listener = recorder
        blog_entry = BlogEntry(blog, title="Toggle")
        service.put_blog_entry(blog_entry)
        listener.events.clear()

        service.unpublish_blog_entry(blog_entry)
        assert listener.events == ["blog_entry_changed", "blog_entry_unpublished"]
        assert blog.get_blog_entry(blog_entry.id) is None
        assert blog.get_draft_blog_entry(blog_entry.id) is blog_entry

    def test_approve_and_reject(self, recorder, service):
        """Test state changes fire approved and rejected."""
        blog, listener = recorder
        blog_entry = BlogEntry(blog, title="Moderated", state=State.PENDING)
        service.put_blog_entry(blog_entry)
        listener.events.clear()

        blog_entry.approve()
        service.put_blog_entry(blog_entry)
        blog_entry.reject()
        service.put_blog_entry(blog_entry)

        assert listener.events == [
            "blog_entry_changed", "blog_entry_approved",
            "blog_entry_changed", "blog_entry_rejected",
        ]

    def test_remove(self, recorder, service):
        """Test removal unfiles the entry and fires removed."""
        blog, listener = recorder
        blog_entry = BlogEntry(blog, title="Gone")
        service.put_blog_entry(blog_entry)
        service.remove_blog_entry(blog_entry)

        assert listener.events[-1] == "blog_entry_removed"
        assert blog.get_blog_entry(blog_entry.id) is None
        assert not blog_entry.persistent

    def test_persistence_failure_propagates(self, blog, service):
        """Test write failures reach the caller and leave the index alone."""
        blog.dao = FailingDAO(blog.dao, "put_blog_entry")
        blog_entry = BlogEntry(blog, title="Unsaved")
        with pytest.raises(PersistenceError):
            service.put_blog_entry(blog_entry)
        assert blog.get_blog_entry(blog_entry.id) is None


class TestPublishBlogEntry:
    """Tests for publishing with a new date."""

    def test_publish_moves_entry(self, blog, make_entry, service, now):
        """Test the entry is refiled under its new date and id."""
        draft = make_entry("Draft", days_ago=3, published=False)
        old_id = draft.id

        service.publish_blog_entry(draft, now - timedelta(days=1))

        assert draft.published
        assert draft.id != old_id
        assert blog.get_blog_entry(draft.id) is draft
        assert blog.get_draft_blog_entry(old_id) is None
        assert blog.get_blog_for_day(now - timedelta(days=1)).entries == [draft]

    def test_republish_published_entry(self, blog, make_entry, service, now):
        """Test a published entry moves from its old day."""
        blog_entry = make_entry("Moving", days_ago=4)
        old_day = blog_entry.daily_blog

        service.publish_blog_entry(blog_entry, now)

        assert old_day.entries == []
        assert blog.get_blog_for_today().entries == [blog_entry]

    def test_failure_between_steps_leaves_entry_removed(self, blog, make_entry, service, now):
        """Test the two step publish is not atomic."""
        blog_entry = make_entry("Fragile", days_ago=2)
        old_id = blog_entry.id
        blog.dao = FailingDAO(blog.dao, "put_blog_entry")

        with pytest.raises(PersistenceError):
            service.publish_blog_entry(blog_entry, now)
        assert blog.get_blog_entry(old_id) is None


class TestReadFailures:
    """Tests for read paths degrading to empty results."""

    def test_lists_empty_on_failure(self, blog):
        """Test drafts, templates and static pages fall back to empty lists."""
        blog.dao = FailingDAO(
            blog.dao, "get_draft_blog_entries", "get_blog_entry_templates", "get_static_pages",
        )
        assert blog.get_draft_blog_entries() == []
        assert blog.get_blog_entry_templates() == []
        assert blog.get_static_pages() == []

    def test_month_left_empty_on_failure(self, tmp_path, dao, make_entry):
        """Test a month that cannot be loaded shows no entries."""
        from calendar_blog.domain import Blog

        make_entry("Stored")
        reopened = Blog(
            "default", tmp_path / "blog", {"timezone": "UTC"},
            dao=FailingDAO(dao, "get_blog_entries"),
        )
        assert reopened.get_blog_for_today().entries == []

    def test_blog_built_when_storage_fails(self, tmp_path, dao):
        """Test years and categories fall back to defaults."""
        from calendar_blog.domain import Blog

        blog = Blog(
            "default", tmp_path / "blog", {"timezone": "UTC"},
            dao=FailingDAO(dao, "get_yearly_blogs", "get_categories"),
        )
        assert [y.year for y in blog.get_yearly_blogs()] == [blog.today().year]
        assert [c.id for c in blog.get_categories()] == ["/"]

    def test_sorted_by_title(self, blog, make_entry):
        """Test drafts are listed by title."""
        make_entry("beta", published=False, minutes=1)
        make_entry("Alpha", published=False, minutes=2)
        assert [d.title for d in blog.get_draft_blog_entries()] == ["Alpha", "beta"]


class TestResponses:
    """Tests for comments and TrackBacks."""

    def test_approved_comment_is_recent(self, blog, make_entry, service):
        """Test approved comments reach the recent responses."""
        blog_entry = make_entry("Discussed")
        pending = service.add_comment(blog_entry, "First!", author="reader")
        assert blog.response_manager.get_recent_approved_responses() == []

        service.approve_comment(pending)
        assert blog.response_manager.get_recent_approved_responses() == [pending]

        service.reject_comment(pending)
        assert blog.response_manager.get_recent_approved_responses() == []

    def test_threaded_comments(self, make_entry, service):
        """Test replies and removing a thread."""
        blog_entry = make_entry("Threaded")
        parent = service.add_comment(blog_entry, "Parent", state=State.APPROVED)
        reply = service.add_comment(blog_entry, "Reply", parent=parent)

        assert reply.parent is parent
        assert parent.replies == [reply]
        assert reply.thread_depth == 1
        assert reply.id != parent.id

        service.remove_comment(parent)
        assert blog_entry.comments == []

    def test_comment_defaults(self, make_entry, service):
        """Test comment title and permalink anchor."""
        blog_entry = make_entry("Commented")
        comment = service.add_comment(blog_entry, "Nice")
        assert comment.title == "Re: Commented"
        assert comment.is_pending
        assert comment.permalink.endswith(f"#comment{comment.id}")

    def test_trackbacks(self, blog, make_entry, service):
        """Test TrackBacks share the response handling."""
        blog_entry = make_entry("Linked")
        trackback = service.add_trackback(
            blog_entry, "https://example.com/post", title="A reply", blog_name="Example",
        )
        service.approve_trackback(trackback)

        assert blog_entry.get_trackback(trackback.id) is trackback
        assert blog.response_manager.get_recent_approved_responses() == [trackback]

        service.remove_trackback(trackback)
        assert blog_entry.trackbacks == []
        assert blog.response_manager.get_recent_approved_responses() == []

    def test_comment_events(self, blog, make_entry, service):
        """Test comment events reach comment listeners."""
        seen = []

        class Listener:
            def __getattr__(self, name):
                return lambda event: seen.append(event.type)

        blog.event_listener_list.comment_listeners.insert(0, Listener())
        comment = service.add_comment(make_entry("Evented"), "Hi")
        service.approve_comment(comment)
        assert seen == [CommentEvent.COMMENT_ADDED, CommentEvent.COMMENT_APPROVED]
