"""
URL configuration for django-calendar-blog.

Include in your project urls.py:

    path('blogs/', include('calendar_blog.urls')),
"""
from django.urls import path

from . import views

app_name = "calendar_blog"

urlpatterns = [
    # Home page and calendar
    path("<slug:blog_id>/", views.BlogHomeView.as_view(), name="home"),
    path("<slug:blog_id>/<int:year>/<int:month>/", views.MonthView.as_view(), name="month"),
    path(
        "<slug:blog_id>/<int:year>/<int:month>/<int:day>/",
        views.DayView.as_view(),
        name="day",
    ),

    # Entries
    path("<slug:blog_id>/entry/<str:entry_id>/", views.BlogEntryDetailView.as_view(), name="entry"),
    path("<slug:blog_id>/p/<path:path>", views.PermalinkView.as_view(), name="permalink"),
    path("<slug:blog_id>/publish/", views.PublishBlogEntryView.as_view(), name="publish"),

    # Categories and tags
    path("<slug:blog_id>/tags/", views.TagCloudView.as_view(), name="tag_cloud"),
    path("<slug:blog_id>/tags/<str:tag>/", views.TagView.as_view(), name="tag"),
    path("<slug:blog_id>/categories/", views.CategoryListView.as_view(), name="category_list"),
    path(
        "<slug:blog_id>/categories/<path:category_id>/",
        views.CategoryView.as_view(),
        name="category",
    ),

    # Search
    path("<slug:blog_id>/search/", views.SearchView.as_view(), name="search"),

    # Responses
    path(
        "<slug:blog_id>/entry/<str:entry_id>/comment/",
        views.CommentCreateView.as_view(),
        name="comment_create",
    ),
    path(
        "<slug:blog_id>/entry/<str:entry_id>/trackback/",
        views.TrackBackView.as_view(),
        name="trackback",
    ),
]
