"""
Models for django-calendar-blog.

All models are importable from calendar_blog.models:

    from calendar_blog.models import Post, PostCategory, Comment, TrackBack
"""
from .posts import PostCategory, Post
from .responses import Comment, TrackBack

__all__ = [
    # Posts
    "PostCategory",
    "Post",
    # Responses
    "Comment",
    "TrackBack",
]
