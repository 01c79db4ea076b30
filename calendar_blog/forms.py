"""
Forms that parse blog request parameters.
"""
from django import forms

from .conf import blog_settings


class PublishBlogEntryForm(forms.Form):
    """Parameters of the publish/unpublish action."""

    PUBLISH = "Publish"
    UNPUBLISH = "Unpublish"

    entry = forms.CharField()
    submit = forms.ChoiceField(choices=[(PUBLISH, PUBLISH), (UNPUBLISH, UNPUBLISH)])
    now = forms.CharField(required=False)
    date = forms.DateTimeField(required=False)

    def publish_date(self, now):
        """
        Return when to publish: the requested date unless it is missing,
        invalid, in the future, or 'now' was not explicitly 'false'.

        Call after is_valid().
        """
        if self.cleaned_data.get("now", "").lower() != "false":
            return now
        date = self.cleaned_data.get("date")
        if date is None:
            return now
        return min(date, now)


class CommentForm(forms.Form):
    body = forms.CharField(max_length=blog_settings.COMMENT_MAX_LENGTH)
    title = forms.CharField(max_length=255, required=False)
    author = forms.CharField(max_length=100, required=False)
    email = forms.EmailField(required=False)
    website = forms.URLField(required=False)
    parent_id = forms.CharField(required=False)


class TrackBackForm(forms.Form):
    url = forms.URLField(max_length=500)
    title = forms.CharField(max_length=255, required=False)
    excerpt = forms.CharField(required=False)
    blog_name = forms.CharField(max_length=255, required=False)
