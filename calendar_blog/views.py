"""
Views for django-calendar-blog.

Every view works on the blog named by the blog_id URL argument, obtained
from the blog manager, and answers with JSON.
"""
import logging

from django.contrib.auth.mixins import AccessMixin, LoginRequiredMixin
from django.core.exceptions import PermissionDenied
from django.http import Http404, HttpResponse, JsonResponse
from django.shortcuts import redirect
from django.utils import timezone
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from .conf import blog_settings
from .constants import BLOG_CONTRIBUTOR_ROLE, BLOG_OWNER_ROLE, State
from .exceptions import BlogError
from .forms import CommentForm, PublishBlogEntryForm, TrackBackForm
from .manager import blog_manager
from .services import BlogService

logger = logging.getLogger(__name__)


def serialize_blog_entry(blog_entry):
    return {
        "id": blog_entry.id,
        "title": blog_entry.title,
        "subtitle": blog_entry.subtitle,
        "excerpt": blog_entry.excerpt,
        "body": blog_entry.body,
        "author": blog_entry.author,
        "date": blog_entry.date.isoformat(),
        "state": blog_entry.state,
        "published": blog_entry.published,
        "tags": blog_entry.get_all_tag_names(),
        "categories": sorted(c.id for c in blog_entry.categories),
        "permalink": blog_entry.local_permalink,
        "comments": len([c for c in blog_entry.comments if c.is_approved]),
        "trackbacks": len([t for t in blog_entry.trackbacks if t.is_approved]),
    }


def serialize_response(response):
    return {
        "id": response.id,
        "type": type(response).__name__.lower(),
        "title": response.title,
        "date": response.date.isoformat(),
        "permalink": response.permalink,
    }


class BlogMixin(AccessMixin):
    """Resolve self.blog and enforce the blog's privacy setting."""

    def dispatch(self, request, *args, **kwargs):
        self.blog = blog_manager.get_blog(kwargs["blog_id"])
        if self.blog is None:
            raise Http404("Blog not found")
        if self.blog.is_private and not request.user.is_authenticated:
            return self.handle_no_permission()
        return super().dispatch(request, *args, **kwargs)

    def is_in_role(self, *roles):
        user = self.request.user
        if not user.is_authenticated:
            return False
        username = user.get_username()
        return any(self.blog.is_user_in_role(role, username) for role in roles)

    @property
    def approved_only(self):
        """Unapproved entries are only shown to owners and contributors."""
        return not self.is_in_role(BLOG_OWNER_ROLE, BLOG_CONTRIBUTOR_ROLE)

    def visible(self, blog_entries):
        if self.approved_only:
            return [e for e in blog_entries if e.is_approved]
        return list(blog_entries)

    def entries_response(self, blog_entries, **extra):
        data = {"blog": self.blog.id}
        data.update(extra)
        data["entries"] = [serialize_blog_entry(e) for e in blog_entries]
        return JsonResponse(data)


class BlogHomeView(BlogMixin, View):
    """The most recent entries and responses of a blog."""

    def get(self, request, blog_id):
        blog_entries = self.blog.get_recent_blog_entries(approved_only=self.approved_only)
        responses = self.blog.response_manager.get_recent_approved_responses()
        return self.entries_response(
            blog_entries,
            name=self.blog.name,
            description=self.blog.description,
            recent_responses=[serialize_response(r) for r in responses],
        )


class DayView(BlogMixin, View):
    def get(self, request, blog_id, year, month, day):
        try:
            daily_blog = self.blog.get_blog_for_day(year, month, day)
        except ValueError:
            raise Http404("No such day")
        return self.entries_response(
            self.visible(daily_blog.entries),
            date=daily_blog.date.isoformat(),
        )


class MonthView(BlogMixin, View):
    def get(self, request, blog_id, year, month):
        try:
            monthly_blog = self.blog.get_blog_for_month(year, month)
        except ValueError:
            raise Http404("No such month")
        return self.entries_response(
            self.visible(monthly_blog.get_blog_entries()),
            month=f"{year:04d}-{month:02d}",
        )


class BlogEntryDetailView(BlogMixin, View):
    """A single entry with links to its neighbours."""

    def get_object(self, entry_id):
        blog_entry = self.blog.get_blog_entry(entry_id)
        if blog_entry is None or (self.approved_only and not blog_entry.is_approved):
            raise Http404("Blog entry not found")
        return blog_entry

    def get(self, request, blog_id, entry_id):
        return self.render_entry(self.get_object(entry_id))

    def render_entry(self, blog_entry):
        data = serialize_blog_entry(blog_entry)
        previous = self.blog.get_previous_blog_entry(blog_entry)
        following = self.blog.get_next_blog_entry(blog_entry)
        data["previous"] = previous.local_permalink if previous else None
        data["next"] = following.local_permalink if following else None
        data["responses"] = [
            serialize_response(r) for r in blog_entry.get_responses() if r.is_approved
        ]
        return JsonResponse(data)


class PermalinkView(BlogEntryDetailView):
    """Resolve a permalink produced by the blog's permalink provider."""

    def get(self, request, blog_id, path):
        uri = "/" + path
        provider = self.blog.permalink_provider

        try:
            if provider.is_blog_entry_permalink(uri):
                blog_entry = provider.get_blog_entry(uri)
                if blog_entry is None or (self.approved_only and not blog_entry.is_approved):
                    raise Http404("Blog entry not found")
                return self.render_entry(blog_entry)
            if provider.is_day_permalink(uri):
                daily_blog = provider.get_daily_blog(uri)
                return self.entries_response(
                    self.visible(daily_blog.entries), date=daily_blog.date.isoformat(),
                )
            if provider.is_month_permalink(uri):
                monthly_blog = provider.get_monthly_blog(uri)
                return self.entries_response(
                    self.visible(monthly_blog.get_blog_entries()),
                    month=monthly_blog.date.strftime("%Y-%m"),
                )
        except ValueError:
            raise Http404("No such date")

        raise Http404("Unknown permalink")


class TagCloudView(BlogMixin, View):
    def get(self, request, blog_id):
        return JsonResponse({
            "blog": self.blog.id,
            "tags": [
                {"name": t.name, "rank": t.rank, "count": t.number_of_blog_entries}
                for t in self.blog.get_tags()
            ],
        })


class TagView(BlogMixin, View):
    def get(self, request, blog_id, tag):
        tag = self.blog.find_tag(tag)
        if tag is None:
            raise Http404("Tag not found")
        blog_entries = self.blog.get_recent_blog_entries(
            self.blog.recent_blog_entries_on_home_page,
            approved_only=self.approved_only,
            tag=tag,
        )
        return self.entries_response(blog_entries, tag=tag.name)


class CategoryListView(BlogMixin, View):
    def get(self, request, blog_id):
        return JsonResponse({
            "blog": self.blog.id,
            "categories": [
                {
                    "id": c.id,
                    "name": c.name,
                    "parent": c.parent.id if c.parent else None,
                    "tags": c.tag_names,
                }
                for c in self.blog.get_categories()
            ],
        })


class CategoryView(BlogMixin, View):
    def get(self, request, blog_id, category_id):
        category = self.blog.get_category("/" + category_id.strip("/"))
        if category is None:
            raise Http404("Category not found")
        blog_entries = self.blog.get_recent_blog_entries(
            self.blog.recent_blog_entries_on_home_page,
            approved_only=self.approved_only,
            category=category,
        )
        return self.entries_response(blog_entries, category=category.id)


class SearchView(BlogMixin, View):
    def get(self, request, blog_id):
        query = request.GET.get("q", "")
        blog_entries = []
        for entry_id in self.blog.search_index.search(query):
            blog_entry = self.blog.get_blog_entry(entry_id)
            if blog_entry is not None:
                blog_entries.append(blog_entry)
        return self.entries_response(self.visible(blog_entries), query=query)


class PublishBlogEntryView(LoginRequiredMixin, BlogMixin, View):
    """
    Publish or unpublish an entry. Blog owners only.

    Publishing takes the 'date' parameter when 'now' is 'false', clamped
    to the current time; an unparseable date publishes now.
    """

    def post(self, request, blog_id):
        if not self.is_in_role(BLOG_OWNER_ROLE):
            raise PermissionDenied

        form = PublishBlogEntryForm(request.POST)
        with timezone.override(self.blog.timezone):
            form.is_valid()

        service = BlogService()
        blog_entry = service.get_blog_entry(self.blog, form.cleaned_data.get("entry"))
        if blog_entry is None:
            raise Http404("Blog entry not found")

        submit = form.cleaned_data.get("submit")
        if submit == PublishBlogEntryForm.PUBLISH:
            if form.has_error("date"):
                logger.warning(
                    "Invalid publish date %r: %s",
                    request.POST.get("date"), form.errors["date"].as_text(),
                )
            publish_date = form.publish_date(timezone.now())
            try:
                service.publish_blog_entry(blog_entry, publish_date)
            except BlogError:
                logger.exception("Could not publish blog entry %s", blog_entry.id)

        elif submit == PublishBlogEntryForm.UNPUBLISH:
            try:
                service.unpublish_blog_entry(blog_entry)
            except BlogError:
                logger.exception("Could not unpublish blog entry %s", blog_entry.id)

        return redirect(blog_entry.local_permalink)


class CommentCreateView(BlogMixin, View):
    """Add a comment to an entry."""

    def post(self, request, blog_id, entry_id):
        blog_entry = self.blog.get_blog_entry(entry_id)
        if blog_entry is None:
            raise Http404("Blog entry not found")

        if not blog_entry.allow_comments:
            return JsonResponse({"error": "Comments disabled"}, status=403)

        form = CommentForm(request.POST)
        if not form.is_valid():
            return JsonResponse({"error": form.errors.get_json_data()}, status=400)

        data = form.cleaned_data
        parent = None
        if data["parent_id"]:
            parent = blog_entry.get_comment(data["parent_id"])
            if parent is None:
                raise Http404("Comment not found")

        try:
            comment = BlogService().add_comment(
                blog_entry,
                data["body"],
                title=data["title"],
                author=data["author"],
                email=data["email"],
                website=data["website"],
                ip_address=request.META.get("REMOTE_ADDR", ""),
                parent=parent,
                state=State.PENDING if blog_settings.MODERATE_COMMENTS else State.APPROVED,
            )
        except BlogError:
            logger.exception("Could not add comment to %s", blog_entry.id)
            return JsonResponse({"error": "Comment could not be saved"}, status=500)

        if request.headers.get("Accept") == "application/json":
            return JsonResponse({
                "id": comment.id,
                "body": comment.body,
                "author": comment.author,
                "date": comment.date.isoformat(),
                "is_approved": comment.is_approved,
            })

        return redirect(blog_entry.local_permalink)


TRACKBACK_RESPONSE = (
    '<?xml version="1.0" encoding="utf-8"?>\n'
    "<response><error>{error}</error>{message}</response>"
)


@method_decorator(csrf_exempt, name="dispatch")
class TrackBackView(BlogMixin, View):
    """Receive a TrackBack ping, answering in the TrackBack XML format."""

    def post(self, request, blog_id, entry_id):
        blog_entry = self.blog.get_blog_entry(entry_id)
        error = None
        if blog_entry is None:
            error = "Blog entry not found"
        elif not blog_entry.allow_trackbacks:
            error = "TrackBacks disabled"
        else:
            form = TrackBackForm(request.POST)
            if not form.is_valid():
                error = "A valid url is required"
            else:
                try:
                    BlogService().add_trackback(
                        blog_entry,
                        ip_address=request.META.get("REMOTE_ADDR", ""),
                        **form.cleaned_data,
                    )
                except BlogError:
                    logger.exception("Could not add TrackBack to %s", blog_entry.id)
                    error = "TrackBack could not be saved"

        if error:
            body = TRACKBACK_RESPONSE.format(error=1, message=f"<message>{error}</message>")
        else:
            body = TRACKBACK_RESPONSE.format(error=0, message="")
        return HttpResponse(body, content_type="text/xml")
