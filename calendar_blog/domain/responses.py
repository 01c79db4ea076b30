"""
Tracking of recently approved comments and TrackBacks.
"""
import threading

from ..conf import blog_settings
from ..events import CommentListener, TrackBackListener


class ResponseManager(CommentListener, TrackBackListener):
    """
    Keeps the most recent approved responses of a blog, newest first.

    Registered with every blog after the configured comment and TrackBack
    listeners, and fed by the blog as months of entries are loaded.
    """

    def __init__(self, blog):
        self.blog = blog
        self._responses = []
        self._lock = threading.Lock()

    def add_response(self, response):
        if not response.is_approved:
            return
        with self._lock:
            self._responses = [r for r in self._responses if r is not response]
            self._responses.append(response)
            self._responses.sort(key=lambda r: r.date, reverse=True)
            del self._responses[blog_settings.RECENT_RESPONSES_LIMIT:]

    def remove_response(self, response):
        with self._lock:
            self._responses = [r for r in self._responses if r is not response]

    def get_recent_approved_responses(self, count=None):
        if count is None:
            count = int(self.blog.properties["recent_responses_on_home_page"])
        with self._lock:
            return [r for r in self._responses if r.is_approved][:count]

    def comment_added(self, event):
        self.add_response(event.comment)

    def comment_approved(self, event):
        self.add_response(event.comment)

    def comment_removed(self, event):
        self.remove_response(event.comment)

    def comment_rejected(self, event):
        self.remove_response(event.comment)

    def trackback_added(self, event):
        self.add_response(event.trackback)

    def trackback_approved(self, event):
        self.add_response(event.trackback)

    def trackback_removed(self, event):
        self.remove_response(event.trackback)

    def trackback_rejected(self, event):
        self.remove_response(event.trackback)
