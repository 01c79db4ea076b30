"""
Shared fixtures for django-calendar-blog tests.
"""
from datetime import timedelta

import pytest
from django.utils import timezone

from calendar_blog.constants import State
from calendar_blog.dao.memory import MemoryBlogEntryDAO
from calendar_blog.domain import Blog, BlogEntry
from calendar_blog.manager import blog_manager
from calendar_blog.services import BlogService


@pytest.fixture(autouse=True)
def blog_engine_settings(settings, tmp_path):
    """Keep blog data directories inside the test's tmp dir."""
    settings.BLOG_ENGINE = dict(settings.BLOG_ENGINE, DATA_DIRECTORY=str(tmp_path / "blogs"))
    yield settings.BLOG_ENGINE
    blog_manager.stop_all()


@pytest.fixture
def dao():
    return MemoryBlogEntryDAO()


@pytest.fixture
def blog(tmp_path, dao):
    """An unstarted blog over the in-memory DAO."""
    return Blog(
        "default",
        tmp_path / "blog",
        {"name": "Test blog", "timezone": "UTC", "blog_owners": "owner"},
        dao=dao,
    )


@pytest.fixture
def service():
    return BlogService()


@pytest.fixture
def now():
    """A fixed 'now' at noon so day offsets never cross midnight."""
    return timezone.now().replace(hour=12, minute=0, second=0, microsecond=0)


@pytest.fixture
def make_entry(blog, service, now):
    """
    Factory storing an entry days_ago days before today.

    minutes offsets entries on the same day; later minutes are newer.
    """

    def factory(title="Entry", days_ago=0, minutes=0, state=State.APPROVED,
                published=True, tags="", target=None, **attrs):
        target = target or blog
        date = now - timedelta(days=days_ago) - timedelta(hours=1) + timedelta(minutes=minutes)
        blog_entry = BlogEntry(
            target,
            title=title,
            body=f"Body of {title}",
            date=date,
            author="owner",
            state=state,
            published=published,
        )
        blog_entry.tags = tags
        for name, value in attrs.items():
            setattr(blog_entry, name, value)
        service.put_blog_entry(blog_entry)
        return blog_entry

    return factory
