"""
Per-blog HTTP request logs.

A blog's request logger is selected with the 'logger' property and is
started and stopped together with the blog.
"""
import logging

from django.utils import timezone

logger = logging.getLogger(__name__)

REQUEST_LOGGER_REGISTRY = {}


def register_request_logger(key, factory):
    REQUEST_LOGGER_REGISTRY[key] = factory


def create_request_logger(key, blog):
    """Return a new request logger for key, or the combined format logger."""
    factory = REQUEST_LOGGER_REGISTRY.get(key)
    if factory is None:
        logger.error("Request logger %r is not registered, using default", key)
        factory = CombinedLogFormatLogger
    return factory(blog)


class AbstractLogger:
    """Base request logger. Subclasses implement log()."""

    def __init__(self, blog):
        self.blog = blog
        self.started = False

    def start(self):
        self.started = True

    def stop(self):
        self.started = False

    def log(self, request, response=None):
        raise NotImplementedError


class CombinedLogFormatLogger(AbstractLogger):
    """
    Writes requests in the Apache combined log format to logs/access.log.

    Requests logged while the logger is stopped are dropped.
    """

    filename = "access.log"

    def __init__(self, blog):
        super().__init__(blog)
        self._logger = logging.getLogger(f"{__name__}.{blog.id}")
        self._logger.propagate = False
        self._handler = None

    @property
    def path(self):
        return self.blog.logs_directory / self.filename

    def start(self):
        if self._handler is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handler = logging.FileHandler(self.path, encoding="utf-8")
            self._handler.setFormatter(logging.Formatter("%(message)s"))
            self._logger.addHandler(self._handler)
            self._logger.setLevel(logging.INFO)
        super().start()

    def stop(self):
        if self._handler is not None:
            self._logger.removeHandler(self._handler)
            self._handler.close()
            self._handler = None
        super().stop()

    def format(self, request, response=None):
        """Return the combined log format line for a request."""
        meta = request.META
        user = getattr(request, "user", None)
        username = user.get_username() if user is not None and user.is_authenticated else "-"
        status = response.status_code if response is not None else 200
        length = "-"
        if response is not None and not getattr(response, "streaming", False):
            length = len(response.content)
        now = timezone.localtime(timezone.now(), self.blog.timezone)

        return '{host} - {user} [{time}] "{method} {path} {protocol}" {status} {length} "{referer}" "{agent}"'.format(
            host=meta.get("REMOTE_ADDR", "-"),
            user=username,
            time=now.strftime("%d/%b/%Y:%H:%M:%S %z"),
            method=request.method,
            path=request.get_full_path(),
            protocol=meta.get("SERVER_PROTOCOL", "HTTP/1.1"),
            status=status,
            length=length,
            referer=meta.get("HTTP_REFERER", "-"),
            agent=meta.get("HTTP_USER_AGENT", "-"),
        )

    def log(self, request, response=None):
        if not self.started:
            return
        self._logger.info(self.format(request, response))


register_request_logger("combined", CombinedLogFormatLogger)
