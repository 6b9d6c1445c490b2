"""Domain error taxonomy shared by the cart and orders apps.

Services raise these; `common.exceptions.api_exception_handler` maps the
category to an HTTP status and renders `{"error": {"code", "message"}}`.
"""

NOT_FOUND = "not_found"
VALIDATION = "validation"
UNAUTHORIZED = "unauthorized"
FORBIDDEN = "forbidden"
UPSTREAM = "upstream"
INTERNAL = "internal"

STATUS_BY_CATEGORY = {
    NOT_FOUND: 404,
    VALIDATION: 400,
    UNAUTHORIZED: 401,
    FORBIDDEN: 403,
    UPSTREAM: 500,
    INTERNAL: 500,
}


class DomainError(Exception):
    """Base class for typed domain failures."""

    code = "INTERNAL_ERROR"
    category = INTERNAL
    default_message = "internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_CATEGORY.get(self.category, 500)


# Not found


class NotFoundError(DomainError):
    code = "NOT_FOUND"
    category = NOT_FOUND
    default_message = "not found"


class CartNotFound(NotFoundError):
    default_message = "cart not found"


class CartItemNotFound(NotFoundError):
    default_message = "cart item not found"


class OrderNotFound(NotFoundError):
    default_message = "order not found"


class ProductNotFound(NotFoundError):
    default_message = "product not found"


class TenantNotFound(NotFoundError):
    code = "INVALID_TENANT"
    default_message = "invalid tenant"


# Validation


class ValidationFailed(DomainError):
    code = "VALIDATION_ERROR"
    category = VALIDATION
    default_message = "validation failed"


class InvalidQuantity(ValidationFailed):
    code = "INVALID_QUANTITY"
    default_message = "invalid quantity"


class InvalidConfiguration(ValidationFailed):
    code = "INVALID_CONFIGURATION"
    default_message = "invalid configuration"


class InvalidCartOwner(ValidationFailed):
    code = "INVALID_CART_OWNER"
    default_message = "invalid cart owner"


class CartNotActive(ValidationFailed):
    code = "CART_NOT_ACTIVE"
    default_message = "cart is not active"


class CartEmpty(ValidationFailed):
    code = "CART_EMPTY"
    default_message = "cart is empty"


class CartValidationFailed(ValidationFailed):
    code = "CART_VALIDATION_FAILED"
    default_message = "cart validation failed"


class InvalidStatusTransition(ValidationFailed):
    code = "INVALID_STATUS_TRANSITION"
    default_message = "invalid order status transition"


class OrderCannotBeCancelled(ValidationFailed):
    code = "ORDER_CANNOT_BE_CANCELLED"
    default_message = "order cannot be cancelled in current status"


class TenantRequired(ValidationFailed):
    code = "TENANT_REQUIRED"
    default_message = "X-Tenant-ID header is required"


# Authorization


class Unauthorized(DomainError):
    code = "UNAUTHORIZED"
    category = UNAUTHORIZED
    default_message = "unauthorized"


class Forbidden(DomainError):
    code = "FORBIDDEN"
    category = FORBIDDEN
    default_message = "forbidden"


class TenantInactive(Forbidden):
    code = "TENANT_INACTIVE"
    default_message = "tenant is not active"


# Upstream


class UpstreamError(DomainError):
    code = "UPSTREAM_ERROR"
    category = UPSTREAM
    default_message = "upstream service error"


class CatalogUnavailable(UpstreamError):
    code = "CATALOG_UNAVAILABLE"
    default_message = "catalog service unavailable"


class PriceNotAvailable(UpstreamError):
    code = "PRICE_NOT_AVAILABLE"
    default_message = "price not available"


class UnknownProductType(UpstreamError):
    code = "UNKNOWN_PRODUCT_TYPE"
    default_message = "unknown product type"


class CartServiceError(UpstreamError):
    code = "CART_SERVICE_ERROR"
    default_message = "cart service error"
