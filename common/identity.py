"""Request identity: tenant plus exactly one of user or guest session.

Cart and order services receive an `Identity` rather than the request so
they can be driven by views, sibling-service gateways and tests alike.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from tenants.models import Tenant
from tenants.selectors import get_active_tenant

from .errors import Unauthorized, ValidationFailed

TENANT_HEADER = "X-Tenant-ID"
USER_HEADER = "X-User-ID"
SESSION_HEADER = "X-Session-ID"
SESSION_ID_MAX_LENGTH = 64


@dataclass(frozen=True)
class Identity:
    tenant: Tenant
    user_id: Optional[uuid.UUID] = None
    session_id: Optional[str] = None

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    def owner(self) -> dict:
        """Keyword arguments identifying the cart owner for `cart.services`."""

        return {"tenant": self.tenant, "user_id": self.user_id, "session_id": self.session_id}


def user_id_from_request(request) -> Optional[uuid.UUID]:
    user = getattr(request, "user", None)
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    try:
        return uuid.UUID(str(user.id))
    except (TypeError, ValueError, AttributeError):
        raise Unauthorized("invalid user identity")


def identity_from_request(request, *, require_user: bool = False) -> Identity:
    """Build the caller's identity from headers and the authenticated user.

    Guests without an `X-Session-ID` header get a fresh session id, which
    views echo back in the response headers.
    """

    tenant = get_active_tenant(code=request.headers.get(TENANT_HEADER))
    user_id = user_id_from_request(request)
    if require_user and user_id is None:
        raise Unauthorized()

    session_id = request.headers.get(SESSION_HEADER) or None
    if session_id and len(session_id) > SESSION_ID_MAX_LENGTH:
        raise ValidationFailed("invalid session id")
    if user_id is None and session_id is None:
        session_id = str(uuid.uuid4())
    return Identity(tenant=tenant, user_id=user_id, session_id=session_id)
