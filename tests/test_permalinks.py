"""
Tests for permalink providers and the search index.
"""
import pytest

from calendar_blog.permalinks import TitlePermalinkProvider, create_permalink_provider
from calendar_blog.search import BlogIndexer, index_exists


@pytest.fixture
def title_blog(tmp_path, dao):
    from calendar_blog.domain import Blog

    return Blog(
        "default", tmp_path / "title-blog",
        {"timezone": "UTC", "permalink_provider": "title"},
        dao=dao,
    )


class TestDefaultPermalinkProvider:
    """Tests for id based permalinks."""

    def test_round_trip(self, blog, make_entry):
        """Test an entry is found again from its permalink."""
        blog_entry = make_entry("Linked", days_ago=2)
        date = blog_entry.date
        permalink = blog_entry.permalink

        assert permalink == f"/{date:%Y/%m/%d}/{blog_entry.id}.html"
        assert blog.permalink_provider.is_blog_entry_permalink(permalink)
        assert blog.permalink_provider.get_blog_entry(permalink) is blog_entry

    def test_local_permalink(self, blog, make_entry):
        """Test the site relative URL of an entry."""
        blog_entry = make_entry("Linked")
        assert blog_entry.local_permalink == f"/blogs/default/p{blog_entry.permalink}"

    def test_day_and_month_permalinks(self, blog):
        """Test day and month URLs resolve to calendar nodes."""
        provider = blog.permalink_provider
        daily_blog = blog.get_blog_for_day(2024, 2, 29)

        assert provider.get_permalink_for_day(daily_blog) == "/2024/02/29.html"
        assert provider.is_day_permalink("/2024/02/29.html")
        assert provider.get_daily_blog("/2024/02/29.html") is daily_blog

        monthly_blog = daily_blog.monthly_blog
        assert provider.get_permalink_for_month(monthly_blog) == "/2024/02.html"
        assert provider.is_month_permalink("/2024/02.html")
        assert provider.get_monthly_blog("/2024/02.html") is monthly_blog
        assert not provider.is_blog_entry_permalink("/2024/02.html")

    def test_unknown_key_falls_back(self):
        """Test an unknown provider key gives the default provider."""
        assert type(create_permalink_provider("missing")).__name__ == "DefaultPermalinkProvider"


class TestTitlePermalinkProvider:
    """Tests for title based permalinks."""

    def test_slug(self, title_blog, make_entry):
        """Test the permalink uses the slugified title."""
        blog_entry = make_entry("Hello World!", target=title_blog)
        assert isinstance(title_blog.permalink_provider, TitlePermalinkProvider)
        assert blog_entry.permalink == f"/{blog_entry.date:%Y/%m/%d}/hello-world.html"

    def test_duplicate_titles_numbered(self, title_blog, make_entry):
        """Test same-titled entries on one day get suffixes in posting order."""
        first = make_entry("Same", minutes=1, target=title_blog)
        second = make_entry("Same", minutes=2, target=title_blog)

        assert first.permalink.endswith("/same.html")
        assert second.permalink.endswith("/same_1.html")
        assert title_blog.permalink_provider.get_blog_entry(second.permalink) is second


class TestSearchIndex:
    """Tests for the file backed search index."""

    def test_index_built_on_start(self, blog, make_entry):
        """Test starting a blog without an index builds one."""
        make_entry("Searchable", body="kittens and puppies")
        (blog.index_directory / "index.json").unlink()
        assert not index_exists(blog.index_directory)

        blog.start()
        assert index_exists(blog.index_directory)
        blog.stop()

    def test_entries_indexed_by_listener(self, blog, make_entry, service):
        """Test stored entries are searchable and removed ones are not."""
        older = make_entry("Kittens", days_ago=1, body="<p>Small cats</p>")
        newer = make_entry("More kittens", body="Still cats", tags="pets")

        assert blog.search_index.search("kittens") == [newer.id, older.id]
        assert blog.search_index.search("cats pets") == [newer.id]
        assert blog.search_index.search("") == []

        service.remove_blog_entry(newer)
        assert blog.search_index.search("kittens") == [older.id]

    def test_unpublished_entries_unindexed(self, blog, make_entry, service):
        """Test unpublishing removes an entry from search."""
        blog_entry = make_entry("Hidden")
        service.unpublish_blog_entry(blog_entry)
        assert blog.search_index.search("hidden") == []

    def test_full_rebuild(self, blog, make_entry):
        """Test BlogIndexer replaces the whole index."""
        blog_entry = make_entry("Rebuilt")
        blog.search_index.rebuild([])
        assert blog.search_index.search("rebuilt") == []

        BlogIndexer().index(blog)
        assert blog.search_index.search("rebuilt") == [blog_entry.id]
