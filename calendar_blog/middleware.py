"""
Request logging middleware.

Add after the authentication middleware so the logged user is known:

    MIDDLEWARE = [
        ...
        'calendar_blog.middleware.RequestLogMiddleware',
    ]
"""
import logging

from django.urls import Resolver404, resolve

from .manager import blog_manager

logger = logging.getLogger(__name__)


class RequestLogMiddleware:
    """Write each request for a blog URL to that blog's request log."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        try:
            match = resolve(request.path_info)
        except Resolver404:
            return response

        blog_id = match.kwargs.get("blog_id")
        if match.app_name == "calendar_blog" and blog_id:
            blog = blog_manager.get_blog(blog_id)
            if blog is not None:
                blog.log(request, response)
        return response
