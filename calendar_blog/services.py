"""
Operations that change a blog: persist first, then update the in-memory
index, then tell the listeners.

Persistence failures propagate as PersistenceError, a BlogError.
"""
import logging

from .constants import State
from .events import BlogEntryEvent, CommentEvent, TrackBackEvent

logger = logging.getLogger(__name__)


class BlogService:
    """Entry points used by views, admin actions and commands."""

    def get_blog_entry(self, blog, entry_id):
        """Return a published entry, or a draft, with this id."""
        blog_entry = blog.get_blog_entry(entry_id)
        if blog_entry is None:
            blog_entry = blog.get_draft_blog_entry(entry_id)
        return blog_entry

    def _events_for_put(self, blog_entry, saved):
        if saved is None:
            yield BlogEntryEvent.BLOG_ENTRY_ADDED
        else:
            yield BlogEntryEvent.BLOG_ENTRY_CHANGED

        was_published = saved is not None and saved[0]
        if blog_entry.published and not was_published:
            yield BlogEntryEvent.BLOG_ENTRY_PUBLISHED
        elif was_published and not blog_entry.published:
            yield BlogEntryEvent.BLOG_ENTRY_UNPUBLISHED

        previous_state = saved[1] if saved is not None else None
        if blog_entry.state != previous_state:
            if blog_entry.state == State.APPROVED and saved is not None:
                yield BlogEntryEvent.BLOG_ENTRY_APPROVED
            elif blog_entry.state == State.REJECTED:
                yield BlogEntryEvent.BLOG_ENTRY_REJECTED

    def put_blog_entry(self, blog_entry):
        """Store an entry, re-index it and fire the matching events."""
        blog = blog_entry.blog
        saved = blog_entry.saved

        blog.dao.put_blog_entry(blog_entry)
        blog_entry.mark_saved()

        if blog_entry.is_blog_entry:
            if blog_entry.published:
                blog.add_blog_entry(blog_entry)
            else:
                blog.remove_blog_entry(blog_entry)

        for event_type in self._events_for_put(blog_entry, saved):
            blog.event_dispatcher.fire_blog_entry_event(BlogEntryEvent(blog_entry, event_type))

    def remove_blog_entry(self, blog_entry):
        blog = blog_entry.blog
        blog.dao.remove_blog_entry(blog_entry)
        blog_entry.mark_removed()
        if blog_entry.is_blog_entry:
            blog.remove_blog_entry(blog_entry)

        blog.event_dispatcher.fire_blog_entry_event(
            BlogEntryEvent(blog_entry, BlogEntryEvent.BLOG_ENTRY_REMOVED)
        )

    def publish_blog_entry(self, blog_entry, date):
        """
        Publish an entry with a new date.

        The entry is removed under its old id before being stored under the
        new one; a failure between the two steps leaves it removed.
        """
        logger.info("Removing blog entry dated %s", blog_entry.date)
        self.remove_blog_entry(blog_entry)

        blog_entry.date = date
        blog_entry.published = True
        logger.info("Putting blog entry dated %s", blog_entry.date)
        self.put_blog_entry(blog_entry)

    def unpublish_blog_entry(self, blog_entry):
        blog_entry.published = False
        self.put_blog_entry(blog_entry)

    # Responses

    def _store(self, blog_entry):
        blog_entry.blog.dao.put_blog_entry(blog_entry)
        blog_entry.mark_saved()

    def _fire_comment(self, comment, event_type):
        dispatcher = comment.blog_entry.blog.event_dispatcher
        dispatcher.fire_comment_event(CommentEvent(comment, event_type))

    def _fire_trackback(self, trackback, event_type):
        dispatcher = trackback.blog_entry.blog.event_dispatcher
        dispatcher.fire_trackback_event(TrackBackEvent(trackback, event_type))

    def add_comment(self, blog_entry, body, **kwargs):
        comment = blog_entry.add_comment(body, **kwargs)
        self._store(blog_entry)
        self._fire_comment(comment, CommentEvent.COMMENT_ADDED)
        return comment

    def approve_comment(self, comment):
        comment.approve()
        self._store(comment.blog_entry)
        self._fire_comment(comment, CommentEvent.COMMENT_APPROVED)

    def reject_comment(self, comment):
        comment.reject()
        self._store(comment.blog_entry)
        self._fire_comment(comment, CommentEvent.COMMENT_REJECTED)

    def remove_comment(self, comment):
        comment.blog_entry.remove_comment(comment)
        self._store(comment.blog_entry)
        self._fire_comment(comment, CommentEvent.COMMENT_REMOVED)

    def add_trackback(self, blog_entry, url, **kwargs):
        trackback = blog_entry.add_trackback(url, **kwargs)
        self._store(blog_entry)
        self._fire_trackback(trackback, TrackBackEvent.TRACKBACK_ADDED)
        return trackback

    def approve_trackback(self, trackback):
        trackback.approve()
        self._store(trackback.blog_entry)
        self._fire_trackback(trackback, TrackBackEvent.TRACKBACK_APPROVED)

    def reject_trackback(self, trackback):
        trackback.reject()
        self._store(trackback.blog_entry)
        self._fire_trackback(trackback, TrackBackEvent.TRACKBACK_REJECTED)

    def remove_trackback(self, trackback):
        trackback.blog_entry.remove_trackback(trackback)
        self._store(trackback.blog_entry)
        self._fire_trackback(trackback, TrackBackEvent.TRACKBACK_REMOVED)

    # Categories

    def add_category(self, blog, category):
        blog.dao.add_category(blog, category)
        blog.add_category(category)

    def remove_category(self, blog, category):
        blog.dao.remove_category(blog, category)
        blog.remove_category(category)
