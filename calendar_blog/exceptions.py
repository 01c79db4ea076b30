"""
Exceptions raised by calendar_blog.
"""


class BlogError(Exception):
    """Base class for blog errors surfaced to callers."""


class PersistenceError(BlogError):
    """Raised when blog data cannot be read from or written to storage."""


class BlogLifecycleError(BlogError):
    """Raised when a blog is started outside of the UNSTARTED state."""
