"""
Blog lifecycle events, listener interfaces and event dispatch.

Listeners and dispatchers are looked up by key in in-process registries
rather than loaded from class names. Projects add their own with:

    from calendar_blog.events import BlogEntryListener, register_listener

    @register_listener("notify-owner")
    class NotifyOwnerListener(BlogEntryListener):
        def blog_entry_published(self, event):
            ...
"""
import logging

logger = logging.getLogger(__name__)


LISTENER_REGISTRY = {}
EVENT_DISPATCHER_REGISTRY = {}


def register_listener(key, factory=None):
    """
    Register a listener factory under a configuration key.

    Can be used as a plain call or as a class decorator.
    """
    if factory is None:
        def decorator(cls):
            LISTENER_REGISTRY[key] = cls
            return cls
        return decorator
    LISTENER_REGISTRY[key] = factory
    return factory


def create_listener(key):
    """Instantiate the listener registered under key."""
    try:
        factory = LISTENER_REGISTRY[key]
    except KeyError:
        raise LookupError(f"No listener registered as {key!r}") from None
    return factory()


def register_event_dispatcher(key, factory):
    EVENT_DISPATCHER_REGISTRY[key] = factory


def get_event_dispatcher(key):
    """Return a new dispatcher for key, or the default dispatcher."""
    factory = EVENT_DISPATCHER_REGISTRY.get(key)
    if factory is None:
        logger.error("Event dispatcher %r is not registered, using default", key)
        factory = DefaultEventDispatcher
    return factory()


class Event:
    """Base class of events; type names the listener method to call."""

    def __init__(self, source, type):
        self.source = source
        self.type = type

    def __repr__(self):
        return f"<{type(self).__name__} {self.type}>"


class BlogEvent(Event):
    BLOG_STARTED = "blog_started"
    BLOG_STOPPED = "blog_stopped"

    @property
    def blog(self):
        return self.source


class BlogEntryEvent(Event):
    BLOG_ENTRY_ADDED = "blog_entry_added"
    BLOG_ENTRY_REMOVED = "blog_entry_removed"
    BLOG_ENTRY_CHANGED = "blog_entry_changed"
    BLOG_ENTRY_PUBLISHED = "blog_entry_published"
    BLOG_ENTRY_UNPUBLISHED = "blog_entry_unpublished"
    BLOG_ENTRY_APPROVED = "blog_entry_approved"
    BLOG_ENTRY_REJECTED = "blog_entry_rejected"

    @property
    def blog_entry(self):
        return self.source


class CommentEvent(Event):
    COMMENT_ADDED = "comment_added"
    COMMENT_REMOVED = "comment_removed"
    COMMENT_APPROVED = "comment_approved"
    COMMENT_REJECTED = "comment_rejected"

    @property
    def comment(self):
        return self.source


class TrackBackEvent(Event):
    TRACKBACK_ADDED = "trackback_added"
    TRACKBACK_REMOVED = "trackback_removed"
    TRACKBACK_APPROVED = "trackback_approved"
    TRACKBACK_REJECTED = "trackback_rejected"

    @property
    def trackback(self):
        return self.source


class BlogListener:
    """Receives blog started/stopped events. Override what you need."""

    def blog_started(self, event):
        pass

    def blog_stopped(self, event):
        pass


class BlogEntryListener:
    def blog_entry_added(self, event):
        pass

    def blog_entry_removed(self, event):
        pass

    def blog_entry_changed(self, event):
        pass

    def blog_entry_published(self, event):
        pass

    def blog_entry_unpublished(self, event):
        pass

    def blog_entry_approved(self, event):
        pass

    def blog_entry_rejected(self, event):
        pass


class CommentListener:
    def comment_added(self, event):
        pass

    def comment_removed(self, event):
        pass

    def comment_approved(self, event):
        pass

    def comment_rejected(self, event):
        pass


class TrackBackListener:
    def trackback_added(self, event):
        pass

    def trackback_removed(self, event):
        pass

    def trackback_approved(self, event):
        pass

    def trackback_rejected(self, event):
        pass


class EventListenerList:
    """The listeners registered with one blog, grouped by kind."""

    def __init__(self):
        self.blog_listeners = []
        self.blog_entry_listeners = []
        self.comment_listeners = []
        self.trackback_listeners = []

    def add_blog_listener(self, listener):
        self.blog_listeners.append(listener)

    def add_blog_entry_listener(self, listener):
        self.blog_entry_listeners.append(listener)

    def add_comment_listener(self, listener):
        self.comment_listeners.append(listener)

    def add_trackback_listener(self, listener):
        self.trackback_listeners.append(listener)


class DefaultEventDispatcher:
    """
    Synchronously calls each registered listener in registration order.

    A listener that raises is logged and the remaining listeners still run.
    """

    def __init__(self, event_listener_list=None):
        self.event_listener_list = event_listener_list or EventListenerList()

    def _dispatch(self, listeners, event):
        for listener in list(listeners):
            try:
                getattr(listener, event.type)(event)
            except Exception:
                logger.exception("Listener %r failed handling %s", listener, event.type)

    def fire_blog_event(self, event):
        self._dispatch(self.event_listener_list.blog_listeners, event)

    def fire_blog_entry_event(self, event):
        self._dispatch(self.event_listener_list.blog_entry_listeners, event)

    def fire_comment_event(self, event):
        self._dispatch(self.event_listener_list.comment_listeners, event)

    def fire_trackback_event(self, event):
        self._dispatch(self.event_listener_list.trackback_listeners, event)


register_event_dispatcher("default", DefaultEventDispatcher)
