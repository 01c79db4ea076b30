"""
Management command to rebuild the search index of one or more blogs.

A blog only builds its index on start when none exists; run this after
changing entries outside the application, e.g. with a database restore.

Usage:
    python manage.py reindex_blog
    python manage.py reindex_blog default travel
    python manage.py reindex_blog --dry-run
"""

import logging

from django.core.management.base import BaseCommand, CommandError

from calendar_blog.conf import blog_settings, get_blog_properties, get_blog_root
from calendar_blog.domain import Blog
from calendar_blog.search import BlogIndexer

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Rebuild the search index of configured blogs."

    def add_arguments(self, parser):
        parser.add_argument(
            "blog_ids",
            nargs="*",
            help="Blogs to reindex (default: every configured blog)",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report how many entries would be indexed without writing",
        )

    def handle(self, *args, **options):
        blog_ids = options["blog_ids"] or list(blog_settings.BLOGS)
        dry_run = options["dry_run"]

        for blog_id in blog_ids:
            properties = get_blog_properties(blog_id)
            if properties is None:
                raise CommandError(f"Blog '{blog_id}' is not configured")

            # Not started: no preload, request log or theme restore.
            blog = Blog(blog_id, get_blog_root(blog_id), properties)
            count = len([e for e in blog.get_blog_entries() if e.published])

            if dry_run:
                self.stdout.write(f"{blog_id}: would index {count} blog entries")
                continue

            BlogIndexer().index(blog)
            logger.info("Reindexed %s", blog_id)
            self.stdout.write(
                self.style.SUCCESS(f"{blog_id}: indexed {count} blog entries")
            )
