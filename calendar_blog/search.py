"""
A small file-backed full text index of blog entries.

The index lives in <blog root>/index/index.json and maps entry ids to
the set of lower-cased words of their title, subtitle, body, excerpt and
tags.
"""
import json
import logging
import re
import threading
from pathlib import Path

from django.utils.html import strip_tags

from .events import BlogEntryListener

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.json"
WORD = re.compile(r"\w+", re.UNICODE)


def index_exists(path):
    """Check if a search index has been written to the directory."""
    return (Path(path) / INDEX_FILENAME).is_file()


def terms_for(blog_entry):
    text = " ".join([
        blog_entry.title,
        blog_entry.subtitle,
        strip_tags(blog_entry.excerpt),
        strip_tags(blog_entry.body),
        " ".join(blog_entry.get_all_tag_names()),
    ])
    return sorted({word.lower() for word in WORD.findall(text)})


class BlogIndex:
    """The search index of one blog."""

    def __init__(self, directory):
        self.directory = Path(directory)
        self._lock = threading.Lock()
        self._documents = None

    @property
    def path(self):
        return self.directory / INDEX_FILENAME

    def _load(self):
        if self._documents is None:
            if self.path.is_file():
                with open(self.path, encoding="utf-8") as f:
                    self._documents = json.load(f)
            else:
                self._documents = {}
        return self._documents

    def _write(self):
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._documents, f)

    def rebuild(self, blog_entries):
        with self._lock:
            self._documents = {e.id: terms_for(e) for e in blog_entries}
            self._write()

    def index_blog_entry(self, blog_entry):
        with self._lock:
            self._load()[blog_entry.id] = terms_for(blog_entry)
            self._write()

    def unindex_blog_entry(self, blog_entry):
        with self._lock:
            if self._load().pop(blog_entry.id, None) is not None:
                self._write()

    def search(self, query):
        """Return ids of entries containing every word of query, newest first."""
        words = [w.lower() for w in WORD.findall(query or "")]
        if not words:
            return []
        with self._lock:
            documents = self._load()
            hits = [
                entry_id for entry_id, terms in documents.items()
                if all(word in terms for word in words)
            ]
        return sorted(hits, key=int, reverse=True)


class BlogIndexer:
    """Rebuilds a blog's search index from all of its published entries."""

    def index(self, blog):
        blog_entries = [e for e in blog.get_blog_entries() if e.published]
        logger.info("Indexing %d blog entries for %s", len(blog_entries), blog.id)
        blog.search_index.rebuild(blog_entries)


class IndexBlogEntryListener(BlogEntryListener):
    """Keeps a blog's search index in step with its entries."""

    def _reindex(self, event):
        blog_entry = event.blog_entry
        if blog_entry.published:
            blog_entry.blog.search_index.index_blog_entry(blog_entry)
        else:
            blog_entry.blog.search_index.unindex_blog_entry(blog_entry)

    def _unindex(self, event):
        event.blog_entry.blog.search_index.unindex_blog_entry(event.blog_entry)

    blog_entry_added = _reindex
    blog_entry_changed = _reindex
    blog_entry_published = _reindex
    blog_entry_approved = _reindex
    blog_entry_removed = _unindex
    blog_entry_unpublished = _unindex
