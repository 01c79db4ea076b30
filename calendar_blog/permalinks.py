"""
Permalink providers map blog entries and days to stable URL paths.

Select one per blog with the 'permalink_provider' property.
"""
import logging
import re

from django.utils.text import slugify

from .conf import blog_settings

logger = logging.getLogger(__name__)

PERMALINK_PROVIDER_REGISTRY = {}

DAY_PATTERN = re.compile(r"^/(\d{4})/(\d{2})/(\d{2})\.html$")
MONTH_PATTERN = re.compile(r"^/(\d{4})/(\d{2})\.html$")


def register_permalink_provider(key, factory):
    PERMALINK_PROVIDER_REGISTRY[key] = factory


def create_permalink_provider(key):
    """Return a new provider for key, or the default provider."""
    factory = PERMALINK_PROVIDER_REGISTRY.get(key)
    if factory is None:
        logger.error("Permalink provider %r is not registered, using default", key)
        factory = DefaultPermalinkProvider
    return factory()


class PermalinkProvider:
    """Base provider; day and month permalinks are shared by all providers."""

    pattern = None

    def __init__(self):
        self.blog = None

    def get_permalink(self, blog_entry):
        raise NotImplementedError

    def get_blog_entry(self, uri):
        raise NotImplementedError

    def is_blog_entry_permalink(self, uri):
        return bool(uri and self.pattern.match(uri))

    def get_permalink_for_day(self, daily_blog):
        return daily_blog.date.strftime("/%Y/%m/%d.html")

    def get_permalink_for_month(self, monthly_blog):
        return monthly_blog.date.strftime("/%Y/%m.html")

    def is_day_permalink(self, uri):
        return bool(uri and DAY_PATTERN.match(uri))

    def is_month_permalink(self, uri):
        return bool(uri and MONTH_PATTERN.match(uri))

    def get_daily_blog(self, uri):
        year, month, day = (int(part) for part in DAY_PATTERN.match(uri).groups())
        return self.blog.get_blog_for_day(year, month, day)

    def get_monthly_blog(self, uri):
        year, month = (int(part) for part in MONTH_PATTERN.match(uri).groups())
        return self.blog.get_blog_for_month(year, month)


class DefaultPermalinkProvider(PermalinkProvider):
    """Permalinks of the form /2006/01/31/1138703600000.html."""

    pattern = re.compile(r"^/\d{4}/\d{2}/\d{2}/(\d+)\.html$")

    def get_permalink(self, blog_entry):
        date = blog_entry.date.astimezone(self.blog.timezone)
        return f"{date:/%Y/%m/%d}/{blog_entry.id}.html"

    def get_blog_entry(self, uri):
        match = self.pattern.match(uri)
        if not match:
            return None
        return self.blog.get_blog_entry(match.group(1))


class TitlePermalinkProvider(PermalinkProvider):
    """
    Permalinks of the form /2006/01/31/my-entry-title.html.

    Entries on the same day with the same title get a numeric suffix in
    posting order, e.g. my-entry-title_1.html.
    """

    pattern = re.compile(r"^/(\d{4})/(\d{2})/(\d{2})/([\w-]+)\.html$")

    def _slug(self, blog_entry):
        slug = slugify(blog_entry.title)[:blog_settings.SLUG_MAX_LENGTH]
        return slug or blog_entry.id

    def get_permalink(self, blog_entry):
        date = blog_entry.date.astimezone(self.blog.timezone)
        slug = self._slug(blog_entry)

        same_title = [
            e for e in reversed(blog_entry.daily_blog.entries)
            if self._slug(e) == slug
        ]
        ids = [e.id for e in same_title]
        if blog_entry.id in ids and ids.index(blog_entry.id) > 0:
            slug = f"{slug}_{ids.index(blog_entry.id)}"

        return f"{date:/%Y/%m/%d}/{slug}.html"

    def get_blog_entry(self, uri):
        match = self.pattern.match(uri)
        if not match:
            return None
        year, month, day = (int(part) for part in match.groups()[:3])
        for blog_entry in self.blog.get_blog_for_day(year, month, day).entries:
            if self.get_permalink(blog_entry) == uri:
                return blog_entry
        return None


register_permalink_provider("default", DefaultPermalinkProvider)
register_permalink_provider("title", TitlePermalinkProvider)
