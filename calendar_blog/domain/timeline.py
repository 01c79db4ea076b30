"""
The year/month/day index of blog entries.

Nodes never hold references to their parents; a parent is looked up
through the owning Blog by its (year, month) index.
"""
import calendar
import threading
from datetime import date, timedelta


class YearlyBlog:
    """A year of a blog, with a fixed slot for each of its 12 months."""

    def __init__(self, blog, year, loaded=True):
        self.blog = blog
        self.year = year
        self._monthly_blogs = [
            MonthlyBlog(blog, year, month, loaded=loaded) for month in range(1, 13)
        ]

    def __repr__(self):
        return f"<YearlyBlog {self.year}>"

    def __lt__(self, other):
        return self.year < other.year

    @property
    def monthly_blogs(self):
        return list(self._monthly_blogs)

    def get_blog_for_month(self, month):
        if not 1 <= month <= 12:
            raise ValueError(f"Invalid month: {month}")
        return self._monthly_blogs[month - 1]

    def get_blog_for_first_month(self):
        return self._monthly_blogs[0]

    def get_blog_for_last_month(self):
        return self._monthly_blogs[-1]

    def has_blog_entries(self):
        return any(month.has_blog_entries() for month in self._monthly_blogs)

    def get_number_of_blog_entries(self):
        return sum(month.get_number_of_blog_entries() for month in self._monthly_blogs)


class MonthlyBlog:
    """
    A month of a blog.

    Day nodes are created on first access. When the month belongs to a year
    known to the persistence layer its entries are loaded once, on first
    access, by Blog.load_blog_entries().
    """

    def __init__(self, blog, year, month, loaded=True):
        self.blog = blog
        self.year = year
        self.month = month
        self.last_day = calendar.monthrange(year, month)[1]
        self._daily_blogs = [None] * 31
        self._loaded = loaded
        self._load_lock = threading.Lock()

    def __repr__(self):
        return f"<MonthlyBlog {self.year}-{self.month:02d}>"

    @property
    def date(self):
        return date(self.year, self.month, 1)

    @property
    def yearly_blog(self):
        return self.blog.get_blog_for_year(self.year)

    @property
    def previous_month(self):
        previous = self.date - timedelta(days=1)
        return self.blog.get_blog_for_month(previous.year, previous.month)

    @property
    def next_month(self):
        following = self.date + timedelta(days=self.last_day)
        return self.blog.get_blog_for_month(following.year, following.month)

    def _ensure_loaded(self):
        if self._loaded:
            return
        with self._load_lock:
            if not self._loaded:
                self.blog.load_blog_entries(self)
                self._loaded = True

    def _get_day(self, day):
        with self.blog.lock:
            daily_blog = self._daily_blogs[day - 1]
            if daily_blog is None:
                daily_blog = DailyBlog(self.blog, self.year, self.month, day)
                self._daily_blogs[day - 1] = daily_blog
            return daily_blog

    def get_blog_for_day(self, day):
        if not 1 <= day <= self.last_day:
            raise ValueError(f"Invalid day for {self.year}-{self.month:02d}: {day}")
        self._ensure_loaded()
        return self._get_day(day)

    def get_blog_for_first_day(self):
        return self.get_blog_for_day(1)

    def get_blog_for_last_day(self):
        return self.get_blog_for_day(self.last_day)

    def get_all_daily_blogs(self):
        """Return every day of the month, loading entries if needed."""
        self._ensure_loaded()
        return [self._get_day(day) for day in range(1, self.last_day + 1)]

    def get_blog_entries(self):
        """Return the month's entries, newest first."""
        entries = []
        for daily_blog in reversed(self.get_all_daily_blogs()):
            entries.extend(daily_blog.entries)
        return entries

    def get_number_of_blog_entries(self):
        return sum(len(d.entries) for d in self.get_all_daily_blogs())

    def has_blog_entries(self):
        return any(d.has_entries() for d in self.get_all_daily_blogs())


class DailyBlog:
    """A single day of a blog, holding its entries newest first."""

    def __init__(self, blog, year, month, day):
        self.blog = blog
        self.year = year
        self.month = month
        self.day = day
        self._entries = []

    def __repr__(self):
        return f"<DailyBlog {self.date.isoformat()}>"

    @property
    def date(self):
        return date(self.year, self.month, self.day)

    @property
    def monthly_blog(self):
        return self.blog.get_blog_for_month(self.year, self.month)

    @property
    def previous_day(self):
        return self.blog.get_blog_for_day(self.date - timedelta(days=1))

    @property
    def next_day(self):
        return self.blog.get_blog_for_day(self.date + timedelta(days=1))

    @property
    def entries(self):
        return list(self._entries)

    def has_entries(self):
        return bool(self._entries)

    def add_entry(self, blog_entry):
        """Add an entry, replacing any entry with the same id."""
        with self.blog.lock:
            self._entries = [e for e in self._entries if e.id != blog_entry.id]
            self._entries.append(blog_entry)
            self._entries.sort(key=lambda e: e.date, reverse=True)

    def remove_entry(self, blog_entry):
        with self.blog.lock:
            self._entries = [e for e in self._entries if e.id != blog_entry.id]

    def get_entry(self, entry_id):
        for blog_entry in self._entries:
            if blog_entry.id == entry_id:
                return blog_entry
        return None

    def get_entries(self, category=None, tag=None):
        """Return entries, optionally limited to a category and/or tag."""
        entries = self.entries
        if category is not None:
            entries = [e for e in entries if e.in_category(category)]
        if tag is not None:
            entries = [e for e in entries if e.has_tag(tag)]
        return entries

    @property
    def first_blog_entry(self):
        """The earliest entry of the day."""
        entries = self._entries
        return entries[-1] if entries else None

    @property
    def last_blog_entry(self):
        """The latest entry of the day."""
        entries = self._entries
        return entries[0] if entries else None

    def get_previous_blog_entry(self, blog_entry):
        """Return the entry posted just before blog_entry on this day."""
        entries = self.entries
        ids = [e.id for e in entries]
        if blog_entry.id not in ids:
            return None
        index = ids.index(blog_entry.id)
        return entries[index + 1] if index + 1 < len(entries) else None

    def get_next_blog_entry(self, blog_entry):
        """Return the entry posted just after blog_entry on this day."""
        entries = self.entries
        ids = [e.id for e in entries]
        if blog_entry.id not in ids:
            return None
        index = ids.index(blog_entry.id)
        return entries[index - 1] if index > 0 else None
