"""Fallback authentication using the `X-User-ID` header.

The storefront sends the signed-in member's id in `X-User-ID` when its
session cookie does not reach the API. The header is only honoured when
`ALLOW_USER_ID_HEADER` is enabled; it is listed after JWT and session
authentication so real credentials always take precedence.
"""

from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework.authentication import BaseAuthentication

from .logging import log_auth_event

HEADER = "X-User-ID"


class UserIdHeaderAuthentication(BaseAuthentication):
    def authenticate(self, request):
        if not getattr(settings, "ALLOW_USER_ID_HEADER", False):
            return None
        raw = request.headers.get(HEADER)
        if not raw:
            return None
        User = get_user_model()
        try:
            user = User.objects.get(pk=int(raw.strip()), is_active=True)
        except (ValueError, User.DoesNotExist):
            log_auth_event("user_id_header", request, status="unknown_user", extra={"header_value": raw[:64]})
            return None
        log_auth_event("user_id_header", request, user=user, status="fallback")
        return (user, None)
