"""
django-calendar-blog - A calendar-indexed Django blog engine.

Features:
- Year/month/day calendar index with lazy loading and day-by-day traversal
- Tag cloud rankings recalculated in the background
- Hierarchical path-based categories
- Comments and TrackBacks with moderation
- Pluggable listeners, permalink providers and request loggers
- Simple file-backed search index
"""

__version__ = "0.1.0"
__author__ = "Nestor Wheelock"

default_app_config = "calendar_blog.apps.CalendarBlogConfig"
