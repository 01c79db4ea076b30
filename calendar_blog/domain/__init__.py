"""
Domain model of a blog: the calendar index of entries, categories, tags
and responses, plus the Blog aggregate that ties them together.

    from calendar_blog.domain import Blog, BlogEntry, Category
"""
from .tags import Tag
from .categories import Category, CategoryBuilder
from .entries import BlogEntry, Comment, TrackBack
from .timeline import YearlyBlog, MonthlyBlog, DailyBlog
from .responses import ResponseManager
from .blog import Blog

__all__ = [
    "Blog",
    "BlogEntry",
    "Category",
    "CategoryBuilder",
    "Comment",
    "DailyBlog",
    "MonthlyBlog",
    "ResponseManager",
    "Tag",
    "TrackBack",
    "YearlyBlog",
]
