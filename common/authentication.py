"""Authentication for calls made by sibling services."""

import uuid

from django.conf import settings
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.models import TokenUser
from rest_framework_simplejwt.settings import api_settings

from .identity import USER_HEADER


class InternalUserHeaderAuthentication(BaseAuthentication):
    """Trust the `X-User-ID` header when `TRUST_INTERNAL_USER_HEADER` is enabled.

    The order service forwards the end user's id this way when it calls the
    cart service during checkout. Only enable it on deployments that are not
    reachable from outside the service network.
    """

    def authenticate(self, request):
        if not getattr(settings, "TRUST_INTERNAL_USER_HEADER", False):
            return None
        raw = request.headers.get(USER_HEADER)
        if not raw:
            return None
        try:
            user_id = uuid.UUID(raw)
        except ValueError:
            raise AuthenticationFailed("Invalid X-User-ID header.")
        return TokenUser({api_settings.USER_ID_CLAIM: str(user_id)}), None
