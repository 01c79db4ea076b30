"""
Persistence of blog entries and categories.

The variant used by blogs is chosen with BLOG_ENGINE['DAO']:

    'orm'     Django models (calendar_blog.models), the default
    'memory'  process-local dictionaries, for tests and previews
"""
import logging

logger = logging.getLogger(__name__)

DAO_REGISTRY = {}


def register_dao(key, factory):
    DAO_REGISTRY[key] = factory


def get_dao(key):
    """Return a new DAO for key; unknown keys fall back to the ORM DAO."""
    factory = DAO_REGISTRY.get(key)
    if factory is None:
        logger.error("DAO %r is not registered, using 'orm'", key)
        factory = DAO_REGISTRY["orm"]
    return factory()


class BlogEntryDAO:
    """
    Interface of the persistence collaborator.

    Every method may raise calendar_blog.exceptions.PersistenceError.
    """

    def get_yearly_blogs(self, blog):
        """Return YearlyBlog nodes, ascending, for years holding entries."""
        raise NotImplementedError

    def get_blog_entries(self, blog, year, month):
        """Return the published blog entries dated in a month."""
        raise NotImplementedError

    def get_blog_entry(self, blog, entry_id):
        raise NotImplementedError

    def put_blog_entry(self, blog_entry):
        raise NotImplementedError

    def remove_blog_entry(self, blog_entry):
        raise NotImplementedError

    def get_draft_blog_entries(self, blog):
        raise NotImplementedError

    def get_blog_entry_templates(self, blog):
        raise NotImplementedError

    def get_static_pages(self, blog):
        raise NotImplementedError

    def get_categories(self, blog):
        """Return the root Category of the blog's category tree."""
        raise NotImplementedError

    def add_category(self, blog, category):
        raise NotImplementedError

    def remove_category(self, blog, category):
        raise NotImplementedError


from . import memory, orm  # noqa: E402,F401

register_dao("memory", memory.MemoryBlogEntryDAO)
register_dao("orm", orm.OrmBlogEntryDAO)
