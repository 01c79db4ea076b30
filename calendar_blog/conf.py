"""
Configuration settings for django-calendar-blog.

Override these in your Django settings.py:

    BLOG_ENGINE = {
        'DATA_DIRECTORY': '/var/lib/blogs',
        'DAO': 'orm',
        'BLOGS': {
            'default': {
                'name': 'My blog',
                'timezone': 'Europe/London',
                'blog_owners': 'simon',
                'blog_entry_listeners': '#disabled-listener\\nmy-listener',
            },
        },
    }

Per-blog properties are strings, like the property files blogs were
originally configured with, and are merged over BLOG_DEFAULTS.
"""
from pathlib import Path

from django.conf import settings

DEFAULTS = {
    # Root directory holding one sub-directory per blog
    "DATA_DIRECTORY": "blogs",

    # Persistence variant, see calendar_blog.dao
    "DAO": "orm",

    # Background loading of every entry after a blog starts
    "PRELOAD_ENTRIES": True,
    "PRELOAD_JOIN_TIMEOUT": 5.0,

    # Past years without entries whose calendar nodes are kept in memory
    "YEAR_CACHE_SIZE": 20,

    # Blogs served by this site, keyed by blog id
    "BLOGS": {"default": {}},
    "DEFAULT_BLOG": "default",

    # Comments and TrackBacks
    "MODERATE_COMMENTS": True,
    "COMMENT_MAX_LENGTH": 5000,
    "RECENT_RESPONSES_LIMIT": 100,

    # SEO
    "SLUG_MAX_LENGTH": 100,
}

BLOG_DEFAULTS = {
    "name": "My blog",
    "description": "",
    "image": "",
    "author": "Blog Owner",
    "email": "blog@yourdomain.com",
    "timezone": "Europe/London",
    "language": "en",
    "country": "GB",
    "character_encoding": "UTF-8",
    "recent_blog_entries_on_home_page": "3",
    "recent_responses_on_home_page": "3",
    "update_notification_pings": "",
    "theme": "default",
    "private": "false",
    "blog_owners": "",
    "blog_contributors": "",
    "blog_listeners": "",
    "blog_entry_listeners": "",
    "comment_listeners": "",
    "trackback_listeners": "",
    "event_dispatcher": "default",
    "logger": "combined",
    "permalink_provider": "default",
}


class BlogEngineSettings:
    """
    Lazy settings object that reads from Django settings.

    Access via: from calendar_blog.conf import blog_settings
    """

    def __getattr__(self, name):
        if name not in DEFAULTS:
            raise AttributeError(f"Invalid calendar_blog setting: {name}")

        user_settings = getattr(settings, "BLOG_ENGINE", {})
        return user_settings.get(name, DEFAULTS[name])

    @property
    def BLOGS(self):
        """Return the configured blogs, always at least the default one."""
        user_settings = getattr(settings, "BLOG_ENGINE", {})
        return user_settings.get("BLOGS") or DEFAULTS["BLOGS"]


blog_settings = BlogEngineSettings()


def get_blog_properties(blog_id):
    """
    Get the merged string properties for a configured blog.

    Args:
        blog_id: key of the blog in BLOG_ENGINE['BLOGS']

    Returns:
        dict of property name to string value, or None if not configured
    """
    blogs = blog_settings.BLOGS
    if blog_id not in blogs:
        return None

    properties = dict(BLOG_DEFAULTS)
    properties.update({key: str(value) for key, value in (blogs[blog_id] or {}).items()})
    return properties


def get_blog_root(blog_id):
    """Return the data directory of a blog."""
    return Path(blog_settings.DATA_DIRECTORY) / blog_id
