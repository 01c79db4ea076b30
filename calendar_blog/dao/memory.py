"""
In-memory persistence, keyed by blog id.
"""
import threading

from ..constants import EntryType
from ..domain.categories import Category, CategoryBuilder
from ..domain.timeline import YearlyBlog
from . import BlogEntryDAO


class MemoryBlogEntryDAO(BlogEntryDAO):
    """Keeps entries and categories in dictionaries for the process lifetime."""

    def __init__(self):
        self._entries = {}
        self._categories = {}
        self._lock = threading.Lock()

    def _entries_for(self, blog):
        return self._entries.setdefault(blog.id, {})

    def _published(self, blog):
        with self._lock:
            entries = list(self._entries_for(blog).values())
        return [
            e for e in entries
            if e.entry_type == EntryType.BLOG_ENTRY and e.published
        ]

    def _of_type(self, blog, entry_type, published=None):
        with self._lock:
            entries = list(self._entries_for(blog).values())
        return [
            e for e in entries
            if e.entry_type == entry_type and (published is None or e.published == published)
        ]

    def get_yearly_blogs(self, blog):
        years = {e.date.astimezone(blog.timezone).year for e in self._published(blog)}
        return [YearlyBlog(blog, year, loaded=False) for year in sorted(years)]

    def get_blog_entries(self, blog, year, month):
        entries = []
        for blog_entry in self._published(blog):
            date = blog_entry.date.astimezone(blog.timezone)
            if (date.year, date.month) == (year, month):
                entries.append(blog_entry)
        return entries

    def get_blog_entry(self, blog, entry_id):
        with self._lock:
            return self._entries_for(blog).get(entry_id)

    def put_blog_entry(self, blog_entry):
        with self._lock:
            self._entries_for(blog_entry.blog)[blog_entry.id] = blog_entry

    def remove_blog_entry(self, blog_entry):
        with self._lock:
            self._entries_for(blog_entry.blog).pop(blog_entry.id, None)

    def get_draft_blog_entries(self, blog):
        return self._of_type(blog, EntryType.BLOG_ENTRY, published=False)

    def get_blog_entry_templates(self, blog):
        return self._of_type(blog, EntryType.TEMPLATE)

    def get_static_pages(self, blog):
        return self._of_type(blog, EntryType.STATIC_PAGE)

    def get_categories(self, blog):
        builder = CategoryBuilder()
        with self._lock:
            rows = sorted(self._categories.get(blog.id, {}).values())
        for id, name, tags in rows:
            builder.add_category(Category(id, name, tags))
        return builder.root

    def add_category(self, blog, category):
        with self._lock:
            self._categories.setdefault(blog.id, {})[category.id] = (
                category.id, category.name, category.tags,
            )

    def remove_category(self, blog, category):
        with self._lock:
            self._categories.get(blog.id, {}).pop(category.id, None)
