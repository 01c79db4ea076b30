"""
The handle through which views reach the blogs of a site.

    from calendar_blog.manager import blog_manager

    blog = blog_manager.get_blog("default")
"""
import atexit
import logging
import threading

from .conf import blog_settings, get_blog_properties, get_blog_root

logger = logging.getLogger(__name__)


class BlogManager:
    """
    Builds and starts each configured blog on first use.

    A blog stays started until stop_all(); stopped blogs are discarded and
    rebuilt on next use.
    """

    def __init__(self):
        self._blogs = {}
        self._lock = threading.Lock()

    def blog_ids(self):
        return list(blog_settings.BLOGS)

    def get_blog(self, blog_id=None):
        """Return the started blog, or None if blog_id is not configured."""
        from .domain import Blog

        blog_id = blog_id or blog_settings.DEFAULT_BLOG
        with self._lock:
            blog = self._blogs.get(blog_id)
            if blog is not None:
                return blog

            properties = get_blog_properties(blog_id)
            if properties is None:
                return None

            logger.info("Starting blog %s", blog_id)
            blog = Blog(blog_id, get_blog_root(blog_id), properties)
            blog.start()
            self._blogs[blog_id] = blog
            return blog

    def stop_all(self):
        with self._lock:
            blogs = list(self._blogs.values())
            self._blogs.clear()
        for blog in blogs:
            logger.info("Stopping blog %s", blog.id)
            blog.stop()


blog_manager = BlogManager()
atexit.register(blog_manager.stop_all)
