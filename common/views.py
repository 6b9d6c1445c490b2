"""View helpers shared by the cart and orders APIs."""

from django.apps import apps

from .identity import SESSION_HEADER, identity_from_request


def get_container():
    return apps.get_app_config("common").container


class IdentityMixin:
    """Resolve the caller's `Identity` once per request.

    A guest session id issued during the request is returned in the
    `X-Session-ID` response header.
    """

    require_user = False

    def get_identity(self):
        identity = getattr(self.request, "_cartflow_identity", None)
        if identity is None:
            identity = identity_from_request(self.request, require_user=self.require_user)
            self.request._cartflow_identity = identity
        return identity

    def finalize_response(self, request, response, *args, **kwargs):
        response = super().finalize_response(request, response, *args, **kwargs)
        identity = getattr(request, "_cartflow_identity", None)
        if identity is not None and identity.is_guest and identity.session_id:
            response[SESSION_HEADER] = identity.session_id
        return response
