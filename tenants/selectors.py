"""Read-only tenant lookups."""

from common.errors import TenantInactive, TenantNotFound, TenantRequired

from .models import Tenant


def get_active_tenant(*, code: str | None) -> Tenant:
    """Resolve a tenant by code, rejecting missing, unknown and inactive tenants."""

    if not code:
        raise TenantRequired()
    try:
        tenant = Tenant.objects.get(code=code)
    except Tenant.DoesNotExist:
        raise TenantNotFound()
    if not tenant.is_active:
        raise TenantInactive()
    return tenant
