"""
The Blog aggregate: configuration, calendar index, categories, tags and
plugin wiring for one blog.
"""
import logging
import threading
from collections import OrderedDict
from datetime import datetime, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

from django.db import connection
from django.urls import reverse
from django.utils import timezone

from ..conf import BLOG_DEFAULTS, blog_settings, get_blog_root
from ..constants import BLOG_CONTRIBUTOR_ROLE, BLOG_OWNER_ROLE, BlogStatus
from ..dao import get_dao
from ..events import (
    BlogEntryListener,
    BlogEvent,
    BlogListener,
    CommentListener,
    EventListenerList,
    TrackBackListener,
    create_listener,
    get_event_dispatcher,
)
from ..exceptions import BlogLifecycleError, PersistenceError
from ..permalinks import create_permalink_provider
from ..request_log import create_request_logger
from ..search import BlogIndex, BlogIndexer, IndexBlogEntryListener, index_exists
from ..themes import Theme
from .categories import Category, CategoryBuilder
from .entries import from_millis
from .responses import ResponseManager
from .tags import Tag, calculate_thresholds
from .timeline import YearlyBlog

logger = logging.getLogger(__name__)

DEFAULT_THEME_DIRECTORY = Path(__file__).resolve().parent.parent / "default_theme"


def parse_plugin_keys(value):
    """Split a whitespace separated list of keys, dropping '#' entries."""
    return [key for key in (value or "").split() if not key.startswith("#")]


class Blog:
    """
    A single blog.

    Create one per blog id (see calendar_blog.manager.BlogManager), call
    start() before serving it and stop() when done. A stopped blog cannot
    be restarted; build a new Blog instead.

    Calendar nodes, category and tag changes, tag ranking and request
    logging are all guarded by the blog's re-entrant lock.
    """

    def __init__(self, id="default", root=None, properties=None, dao=None):
        self.id = id
        self.root = Path(root) if root is not None else get_blog_root(id)
        self.properties = dict(BLOG_DEFAULTS)
        self.properties.update(properties or {})
        self.status = BlogStatus.UNSTARTED
        self.lock = threading.RLock()
        self.dao = dao if dao is not None else get_dao(blog_settings.DAO)

        self._tags = {}
        self._yearly_blogs = []
        self._detached_years = OrderedDict()
        self._preload_thread = None
        self._preload_cancelled = threading.Event()

        self._init()

    def __repr__(self):
        return f"<Blog {self.id} {self.status}>"

    def _init(self):
        self.permalink_provider = create_permalink_provider(self.properties["permalink_provider"])
        self.permalink_provider.blog = self

        try:
            self.root_category = self.dao.get_categories(self)
        except PersistenceError:
            logger.exception("Could not load categories for %s", self.id)
            self.root_category = Category("/", "All")

        self.response_manager = ResponseManager(self)

        try:
            self._yearly_blogs = sorted(self.dao.get_yearly_blogs(self))
        except PersistenceError:
            logger.exception("Could not load years for %s", self.id)
            self._yearly_blogs = []

        this_year = self.today().year
        if not any(y.year == this_year for y in self._yearly_blogs):
            self._yearly_blogs.append(YearlyBlog(self, this_year))
            self._yearly_blogs.sort()

        for directory in (
            self.index_directory,
            self.logs_directory,
            self.files_directory,
            self.images_directory,
        ):
            directory.mkdir(parents=True, exist_ok=True)

        self.search_index = BlogIndex(self.index_directory)
        self.editable_theme = Theme(
            self.properties["theme"],
            self.theme_directory,
            self.theme_backup_directory,
            DEFAULT_THEME_DIRECTORY,
        )

        self._init_logger()
        self._init_event_dispatcher()
        self._init_listeners()

    def _init_logger(self):
        logger.info("Initializing logger")
        self.logger = create_request_logger(self.properties["logger"], self)

    def _init_event_dispatcher(self):
        logger.info("Initializing event dispatcher")
        self.event_listener_list = EventListenerList()
        self.event_dispatcher = get_event_dispatcher(self.properties["event_dispatcher"])
        self.event_dispatcher.event_listener_list = self.event_listener_list

    def _register_listeners(self, label, property_name, interface, add):
        logger.info("Registering %s listeners", label)
        for key in parse_plugin_keys(self.properties.get(property_name)):
            try:
                listener = create_listener(key)
            except Exception:
                logger.error("%s listener %s could not be registered", label, key, exc_info=True)
                continue
            if not isinstance(listener, interface):
                logger.error("%s listener %s is not a %s", label, key, interface.__name__)
                continue
            add(listener)

    def _init_listeners(self):
        listeners = self.event_listener_list
        self._register_listeners(
            "Blog", "blog_listeners", BlogListener, listeners.add_blog_listener,
        )
        self._register_listeners(
            "Blog entry", "blog_entry_listeners", BlogEntryListener,
            listeners.add_blog_entry_listener,
        )
        listeners.add_blog_entry_listener(IndexBlogEntryListener())

        self._register_listeners(
            "Comment", "comment_listeners", CommentListener, listeners.add_comment_listener,
        )
        listeners.add_comment_listener(self.response_manager)

        self._register_listeners(
            "TrackBack", "trackback_listeners", TrackBackListener,
            listeners.add_trackback_listener,
        )
        listeners.add_trackback_listener(self.response_manager)

    # Lifecycle

    def start(self):
        """Index if needed, start logging, restore the theme and preload."""
        with self.lock:
            if self.status != BlogStatus.UNSTARTED:
                raise BlogLifecycleError(f"Blog {self.id} is {self.status}, cannot start")
            self.status = BlogStatus.STARTED

        if not index_exists(self.index_directory):
            BlogIndexer().index(self)

        self.logger.start()
        self.editable_theme.restore()
        if blog_settings.PRELOAD_ENTRIES:
            self._start_preload()

        self.event_dispatcher.fire_blog_event(BlogEvent(self, BlogEvent.BLOG_STARTED))

    def stop(self):
        with self.lock:
            if self.status != BlogStatus.STARTED:
                return
            self.status = BlogStatus.STOPPED

        self._cancel_preload()
        with self.lock:
            self.logger.stop()
            self.logger = None
        self.editable_theme.backup()

        self.event_dispatcher.fire_blog_event(BlogEvent(self, BlogEvent.BLOG_STOPPED))

    @property
    def is_started(self):
        return self.status == BlogStatus.STARTED

    def _start_preload(self):
        self._preload_thread = threading.Thread(
            target=self.preload,
            name=f"calendar_blog/{self.id}/preload",
            daemon=True,
        )
        self._preload_thread.start()

    def _cancel_preload(self):
        self._preload_cancelled.set()
        thread = self._preload_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(blog_settings.PRELOAD_JOIN_TIMEOUT)
            if thread.is_alive():
                logger.warning("Preload of %s still running after stop", self.id)

    def preload(self):
        """
        Load every day of the blog, newest first, then rank tags.

        Stops between days once the blog is stopped.
        """
        try:
            for yearly_blog in reversed(self.get_yearly_blogs()):
                for monthly_blog in reversed(yearly_blog.monthly_blogs):
                    for day in range(monthly_blog.last_day, 0, -1):
                        if self._preload_cancelled.is_set():
                            logger.info("Preload of %s cancelled", self.id)
                            return
                        monthly_blog.get_blog_for_day(day)

            self.recalculate_tag_rankings()
        finally:
            if threading.current_thread() is self._preload_thread:
                connection.close()

    def log(self, request, response=None):
        with self.lock:
            if self.logger is not None:
                self.logger.log(request, response)

    # Properties

    def get_property(self, name):
        return self.properties.get(name)

    @property
    def name(self):
        return self.properties["name"]

    @property
    def description(self):
        return self.properties["description"]

    @property
    def author(self):
        return self.properties["author"]

    @property
    def email(self):
        return self.properties["email"]

    @property
    def email_addresses(self):
        return [e.strip() for e in self.email.split(",") if e.strip()]

    @property
    def first_email_address(self):
        addresses = self.email_addresses
        return addresses[0] if addresses else ""

    @property
    def update_notification_pings(self):
        return set(self.properties["update_notification_pings"].split())

    @property
    def timezone(self):
        return ZoneInfo(self.properties["timezone"])

    @property
    def locale(self):
        country = self.properties["country"]
        language = self.properties["language"]
        return f"{language}_{country}" if country else language

    @property
    def recent_blog_entries_on_home_page(self):
        return int(self.properties["recent_blog_entries_on_home_page"])

    @property
    def is_private(self):
        return self.properties["private"].lower() == "true"

    @property
    def is_public(self):
        return self.properties["private"].lower() == "false"

    @property
    def blog_owners(self):
        return self.properties["blog_owners"]

    @property
    def blog_contributors(self):
        return self.properties["blog_contributors"]

    def get_users_in_role(self, role):
        if role == BLOG_OWNER_ROLE:
            users = self.blog_owners
        elif role == BLOG_CONTRIBUTOR_ROLE:
            users = self.blog_contributors
        else:
            users = ""
        return {u.strip() for u in users.split(",") if u.strip()}

    def is_user_in_role(self, role, username):
        """An empty role means every user is in it."""
        users = self.get_users_in_role(role)
        return not users or username in users

    @property
    def index_directory(self):
        return self.root / "index"

    @property
    def logs_directory(self):
        return self.root / "logs"

    @property
    def files_directory(self):
        return self.root / "files"

    @property
    def images_directory(self):
        return self.root / "images"

    @property
    def theme_directory(self):
        return self.root / "theme"

    @property
    def theme_backup_directory(self):
        return self.root / "theme-backup"

    def get_local_url(self, path):
        return reverse(
            "calendar_blog:permalink",
            kwargs={"blog_id": self.id, "path": path.lstrip("/")},
        )

    # Calendar

    def now(self):
        return timezone.localtime(timezone.now(), self.timezone)

    def today(self):
        return self.now().date()

    def get_yearly_blogs(self):
        with self.lock:
            return list(self._yearly_blogs)

    def _retain(self, yearly_blog):
        with self.lock:
            if yearly_blog not in self._yearly_blogs:
                self._detached_years.pop(yearly_blog.year, None)
                self._yearly_blogs.append(yearly_blog)
                self._yearly_blogs.sort()

    def get_blog_for_year(self, year):
        """
        Return the node for a year.

        Unknown years are kept only when later than every year the blog
        already has (and than this year). The most recently used other years
        are cached apart from get_yearly_blogs(), YEAR_CACHE_SIZE at most.
        """
        with self.lock:
            for yearly_blog in self._yearly_blogs:
                if yearly_blog.year == year:
                    return yearly_blog

            latest = max([y.year for y in self._yearly_blogs] + [self.today().year])
            if year > latest:
                yearly_blog = YearlyBlog(self, year)
                self._retain(yearly_blog)
                return yearly_blog

            yearly_blog = self._detached_years.get(year)
            if yearly_blog is not None:
                self._detached_years.move_to_end(year)
                return yearly_blog

            yearly_blog = YearlyBlog(self, year)
            self._detached_years[year] = yearly_blog
            while len(self._detached_years) > blog_settings.YEAR_CACHE_SIZE:
                self._detached_years.popitem(last=False)
            return yearly_blog

    def get_blog_for_this_year(self):
        return self.get_blog_for_year(self.today().year)

    def get_blog_for_previous_year(self, yearly_blog):
        return self.get_blog_for_year(yearly_blog.year - 1)

    def get_blog_for_next_year(self, yearly_blog):
        return self.get_blog_for_year(yearly_blog.year + 1)

    def get_blog_for_month(self, year, month):
        return self.get_blog_for_year(year).get_blog_for_month(month)

    def get_blog_for_this_month(self):
        today = self.today()
        return self.get_blog_for_month(today.year, today.month)

    def get_blog_for_day(self, year, month=None, day=None):
        """
        Return the node for a day.

        Accepts either (year, month, day) or a single date or datetime,
        which is read in the blog's time zone.
        """
        if month is None:
            value = year
            if isinstance(value, datetime):
                if timezone.is_aware(value):
                    value = value.astimezone(self.timezone)
                value = value.date()
            year, month, day = value.year, value.month, value.day
        return self.get_blog_for_month(year, month).get_blog_for_day(day)

    def get_blog_for_today(self):
        return self.get_blog_for_day(self.today())

    def get_blog_for_first_month(self):
        """Return the first month with entries, or January of the first year."""
        with self.lock:
            first_year = self._yearly_blogs[0] if self._yearly_blogs else None
        if first_year is None:
            first_year = self.get_blog_for_this_year()

        for month in first_year.monthly_blogs:
            if month.has_blog_entries():
                return month
        return first_year.get_blog_for_first_month()

    def _first_day(self):
        return self.get_blog_for_first_month().get_blog_for_first_day().date

    def load_blog_entries(self, monthly_blog):
        """Load a month's entries from persistence into its day nodes."""
        try:
            blog_entries = self.dao.get_blog_entries(self, monthly_blog.year, monthly_blog.month)
        except PersistenceError:
            logger.exception(
                "Could not load entries of %s for %d-%02d",
                self.id, monthly_blog.year, monthly_blog.month,
            )
            return

        for blog_entry in blog_entries:
            day = blog_entry.date.astimezone(self.timezone).day
            monthly_blog._get_day(day).add_entry(blog_entry)
            self._link_tags(blog_entry)
            self._link_categories(blog_entry)
            for response in blog_entry.get_responses():
                self.response_manager.add_response(response)

    # Entries

    def add_blog_entry(self, blog_entry):
        """File a published entry under its day, linking its tags and categories."""
        local = blog_entry.date.astimezone(self.timezone)
        yearly_blog = self.get_blog_for_year(local.year)
        # Resolved before taking the lock: loading a month takes the blog
        # lock while holding the month's load lock.
        daily_blog = yearly_blog.get_blog_for_month(local.month).get_blog_for_day(local.day)
        with self.lock:
            self._retain(yearly_blog)
            daily_blog.add_entry(blog_entry)
            self._link_tags(blog_entry)
            self._link_categories(blog_entry)

    def remove_blog_entry(self, blog_entry):
        """Remove an entry from its day, every tag and every category."""
        daily_blog = blog_entry.daily_blog
        with self.lock:
            daily_blog.remove_entry(blog_entry)
            for tag in self._tags.values():
                tag.remove_blog_entry(blog_entry)
            for category in self.get_categories():
                category.blog_entry_ids.discard(blog_entry.id)

    def get_blog_entry(self, entry_id):
        """Return the published entry with this id, or None."""
        if not entry_id:
            return None
        try:
            date = from_millis(entry_id, self.timezone)
        except (ValueError, OverflowError, OSError):
            return None
        return self.get_blog_for_day(date).get_entry(str(entry_id))

    def get_blog_entries(self):
        """Return every published entry, newest first."""
        blog_entries = []
        for yearly_blog in reversed(self.get_yearly_blogs()):
            for monthly_blog in reversed(yearly_blog.monthly_blogs):
                blog_entries.extend(monthly_blog.get_blog_entries())
        return blog_entries

    def get_number_of_blog_entries(self):
        return sum(y.get_number_of_blog_entries() for y in self.get_yearly_blogs())

    def get_recent_blog_entries(self, number_of_entries=None, approved_only=False,
                                category=None, tag=None):
        """
        Walk back a day at a time from today collecting entries.

        Stops when enough entries are found or the first day of the blog
        has been visited. Entries of a day are taken newest first.
        """
        if number_of_entries is None:
            number_of_entries = self.recent_blog_entries_on_home_page
        first_day = self._first_day()
        current = self.today()
        blog_entries = []

        while len(blog_entries) < number_of_entries:
            daily_blog = self.get_blog_for_day(current)
            for blog_entry in daily_blog.get_entries(category=category, tag=tag):
                if len(blog_entries) >= number_of_entries:
                    break
                if not approved_only or blog_entry.is_approved:
                    blog_entries.append(blog_entry)

            if current <= first_day:
                break
            current -= timedelta(days=1)

        return blog_entries

    def get_last_modified(self):
        dates = [e.date for e in self.get_recent_blog_entries()]
        if not dates:
            return datetime.fromtimestamp(0, tz=self.timezone)
        return max(dates)

    def get_previous_blog_entry(self, blog_entry):
        daily_blog = blog_entry.daily_blog
        previous = daily_blog.get_previous_blog_entry(blog_entry)
        first_day = self._first_day()

        while previous is None and daily_blog.date > first_day:
            daily_blog = daily_blog.previous_day
            previous = daily_blog.last_blog_entry
        return previous

    def get_next_blog_entry(self, blog_entry):
        daily_blog = blog_entry.daily_blog
        following = daily_blog.get_next_blog_entry(blog_entry)
        today = self.today()

        while following is None and daily_blog.date < today:
            daily_blog = daily_blog.next_day
            following = daily_blog.first_blog_entry
        return following

    def _load_sorted(self, loader, label):
        try:
            blog_entries = list(loader(self))
        except PersistenceError:
            logger.exception("Could not load %s for %s", label, self.id)
            blog_entries = []
        return sorted(blog_entries, key=lambda e: e.title.lower())

    def get_draft_blog_entries(self):
        return self._load_sorted(self.dao.get_draft_blog_entries, "drafts")

    def get_blog_entry_templates(self):
        return self._load_sorted(self.dao.get_blog_entry_templates, "templates")

    def get_static_pages(self):
        return self._load_sorted(self.dao.get_static_pages, "static pages")

    def get_draft_blog_entry(self, entry_id):
        return next((e for e in self.get_draft_blog_entries() if e.id == entry_id), None)

    def get_blog_entry_template(self, entry_id):
        return next((e for e in self.get_blog_entry_templates() if e.id == entry_id), None)

    def get_static_page(self, entry_id):
        return next((e for e in self.get_static_pages() if e.id == entry_id), None)

    # Categories

    def get_categories(self):
        return CategoryBuilder(self.root_category).get_categories()

    def get_category(self, id):
        return CategoryBuilder(self.root_category).get_category(id)

    def add_category(self, category):
        with self.lock:
            if self.get_category(category.id) is None:
                builder = CategoryBuilder(self.root_category)
                builder.add_category(category)
                self.root_category = builder.root

    def remove_category(self, category):
        with self.lock:
            if self.get_category(category.id) is not None:
                CategoryBuilder(self.root_category).remove_category(category)

    # Tags

    def get_tag(self, name):
        name = Tag.encode(name)
        with self.lock:
            tag = self._tags.get(name)
            if tag is None:
                tag = Tag(name, self)
                self._tags[name] = tag
            return tag

    def find_tag(self, name):
        """Return the tag called name, or None. Never creates one."""
        with self.lock:
            return self._tags.get(Tag.encode(name))

    def get_tags(self):
        """Return tags that are used by at least one entry, by name."""
        with self.lock:
            tags = list(self._tags.values())
        return sorted(t for t in tags if t.number_of_blog_entries > 0)

    def _link_categories(self, blog_entry):
        ids = {c.id for c in blog_entry.categories}
        with self.lock:
            for category in self.get_categories():
                if category.id in ids:
                    category.blog_entry_ids.add(blog_entry.id)
                else:
                    category.blog_entry_ids.discard(blog_entry.id)

    def _link_tags(self, blog_entry):
        names = blog_entry.get_all_tag_names()
        with self.lock:
            for tag in self._tags.values():
                if tag.name not in names:
                    tag.remove_blog_entry(blog_entry)
            for name in names:
                self.get_tag(name).add_blog_entry(blog_entry)

    def recalculate_tag_rankings(self):
        """Re-rank every tag into ten buckets. A blog without tags is left alone."""
        with self.lock:
            tags = list(self._tags.values())
            if not tags:
                return
            thresholds = calculate_thresholds([t.number_of_blog_entries for t in tags])
            for tag in tags:
                tag.calculate_rank(thresholds)

