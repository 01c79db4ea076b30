"""
Blog entries and their responses (comments and TrackBacks).
"""
from datetime import datetime, timedelta

from django.utils import timezone

from ..constants import EntryType, State
from .tags import Tag


def millis(date):
    """Return the epoch milliseconds of an aware datetime."""
    return int(date.timestamp() * 1000)


def from_millis(value, tz):
    """Inverse of millis(), expressed in the given time zone."""
    return datetime.fromtimestamp(int(value) / 1000.0, tz=tz)


class BlogEntry:
    """
    A single entry of a blog.

    The id is derived from the entry date (epoch milliseconds) and changes
    whenever the date changes. The day an entry lives on is resolved through
    the blog rather than stored on the entry.
    """

    def __init__(
        self,
        blog,
        title="",
        body="",
        date=None,
        author="",
        entry_type=EntryType.BLOG_ENTRY,
        state=State.APPROVED,
        published=True,
    ):
        self.blog = blog
        self.title = title
        self.subtitle = ""
        self.excerpt = ""
        self.body = body
        self.author = author
        self.entry_type = entry_type
        self.state = state
        self.published = published
        self.tags = ""
        self.categories = set()
        self.comments = []
        self.trackbacks = []
        self.allow_comments = True
        self.allow_trackbacks = True
        self.saved = None
        self.date = date or timezone.now()

    def __str__(self):
        if self.title:
            return self.title
        return f"{self.body[:50]}..." if len(self.body) > 50 else self.body

    def __repr__(self):
        return f"<BlogEntry {self.id} {self.title!r}>"

    @property
    def date(self):
        return self._date

    @date.setter
    def date(self, value):
        if timezone.is_naive(value):
            value = timezone.make_aware(value, self.blog.timezone)
        self._date = value
        self.id = str(millis(value))

    @property
    def persistent(self):
        return self.saved is not None

    def mark_saved(self):
        """Remember the published flag and state as last stored."""
        self.saved = (self.published, self.state)

    def mark_removed(self):
        self.saved = None

    @property
    def daily_blog(self):
        """Return the DailyBlog node this entry is filed under."""
        return self.blog.get_blog_for_day(self.date)

    @property
    def is_blog_entry(self):
        return self.entry_type == EntryType.BLOG_ENTRY

    @property
    def is_approved(self):
        return self.state == State.APPROVED

    @property
    def is_pending(self):
        return self.state == State.PENDING

    @property
    def is_rejected(self):
        return self.state == State.REJECTED

    @property
    def permalink(self):
        return self.blog.permalink_provider.get_permalink(self)

    @property
    def local_permalink(self):
        """Return the site-relative URL of this entry."""
        return self.blog.get_local_url(self.permalink)

    @property
    def tag_names(self):
        """Return the entry's own tags, normalized, in order."""
        names = []
        for raw in self.tags.replace(",", " ").split():
            name = Tag.encode(raw)
            if name and name not in names:
                names.append(name)
        return names

    def get_all_tag_names(self):
        """Return own tags followed by those inherited from categories."""
        names = self.tag_names
        for category in sorted(self.categories):
            for name in category.tag_names:
                if name not in names:
                    names.append(name)
        return names

    def get_all_tags(self):
        return [self.blog.get_tag(name) for name in self.get_all_tag_names()]

    def has_tag(self, tag):
        return Tag.encode(str(tag)) in self.get_all_tag_names()

    def in_category(self, category):
        """Check if any of the entry's categories is category or below it."""
        if category is None:
            return True
        return any(category.has_category(c) for c in self.categories)

    def add_category(self, category):
        self.categories.add(category)

    def remove_category(self, category):
        self.categories.discard(category)

    def approve(self):
        self.state = State.APPROVED

    def reject(self):
        self.state = State.REJECTED

    # Responses

    def _next_response_date(self, date, existing):
        # Response ids are millisecond timestamps and must stay unique.
        date = date or timezone.now()
        taken = {r.id for r in existing}
        while str(millis(date)) in taken:
            date = date + timedelta(milliseconds=1)
        return date

    def add_comment(self, body, author="", title="", email="", website="",
                    ip_address="", parent=None, date=None, state=State.PENDING):
        """Create a comment on this entry and return it."""
        comment = Comment(
            self,
            body=body,
            author=author,
            title=title or f"Re: {self.title}",
            email=email,
            website=website,
            ip_address=ip_address,
            parent_id=parent.id if parent else None,
            date=self._next_response_date(date, self.comments),
            state=state,
        )
        self.comments.append(comment)
        self.comments.sort(key=lambda c: c.date)
        return comment

    def get_comment(self, comment_id):
        for comment in self.comments:
            if comment.id == str(comment_id):
                return comment
        return None

    def remove_comment(self, comment):
        """Remove a comment and, recursively, its replies."""
        for reply in comment.replies:
            self.remove_comment(reply)
        if comment in self.comments:
            self.comments.remove(comment)

    def add_trackback(self, url, title="", excerpt="", blog_name="",
                      ip_address="", date=None, state=State.PENDING):
        trackback = TrackBack(
            self,
            url=url,
            title=title,
            excerpt=excerpt,
            blog_name=blog_name,
            ip_address=ip_address,
            date=self._next_response_date(date, self.trackbacks),
            state=state,
        )
        self.trackbacks.append(trackback)
        self.trackbacks.sort(key=lambda t: t.date)
        return trackback

    def get_trackback(self, trackback_id):
        for trackback in self.trackbacks:
            if trackback.id == str(trackback_id):
                return trackback
        return None

    def remove_trackback(self, trackback):
        if trackback in self.trackbacks:
            self.trackbacks.remove(trackback)

    def get_responses(self):
        """Return comments and TrackBacks, oldest first."""
        return sorted(self.comments + self.trackbacks, key=lambda r: r.date)


class Response:
    """Common behaviour of comments and TrackBacks."""

    anchor = "response"

    def __init__(self, blog_entry, title="", ip_address="", date=None, state=State.PENDING):
        self.blog_entry = blog_entry
        self.title = title
        self.ip_address = ip_address
        self.date = date or timezone.now()
        self.id = str(millis(self.date))
        self.state = state

    def __repr__(self):
        return f"<{type(self).__name__} {self.id} on {self.blog_entry.id}>"

    @property
    def is_approved(self):
        return self.state == State.APPROVED

    @property
    def is_pending(self):
        return self.state == State.PENDING

    @property
    def is_rejected(self):
        return self.state == State.REJECTED

    def approve(self):
        self.state = State.APPROVED

    def reject(self):
        self.state = State.REJECTED

    @property
    def permalink(self):
        return f"{self.blog_entry.local_permalink}#{self.anchor}{self.id}"


class Comment(Response):
    """
    Comment on a blog entry.

    Supports threaded replies via parent_id.
    """

    anchor = "comment"

    def __init__(self, blog_entry, body="", author="", email="", website="",
                 parent_id=None, **kwargs):
        super().__init__(blog_entry, **kwargs)
        self.body = body
        self.author = author
        self.email = email
        self.website = website
        self.parent_id = parent_id

    @property
    def preview(self):
        """Return truncated body for admin display."""
        if len(self.body) > 100:
            return self.body[:100] + "..."
        return self.body

    @property
    def parent(self):
        if self.parent_id is None:
            return None
        return self.blog_entry.get_comment(self.parent_id)

    @property
    def replies(self):
        return [c for c in self.blog_entry.comments if c.parent_id == self.id]

    @property
    def thread_depth(self):
        """Calculate nesting depth of this comment."""
        depth = 0
        current = self.parent
        while current:
            depth += 1
            current = current.parent
        return depth


class TrackBack(Response):
    """A TrackBack ping received from another blog."""

    anchor = "trackback"

    def __init__(self, blog_entry, url="", excerpt="", blog_name="", **kwargs):
        super().__init__(blog_entry, **kwargs)
        self.url = url
        self.excerpt = excerpt
        self.blog_name = blog_name
