"""Centralized SQLModel imports to ensure metadata is populated."""

from blog_api.backend.models import user as _user  # noqa: F401
from blog_api.backend.models import refresh_token as _refresh_token  # noqa: F401
