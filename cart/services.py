"""Cart services: mutations of the cart aggregate.

Every mutation runs in a transaction and locks the cart row before the
read-modify-write, so concurrent requests against the same cart serialize.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from common.errors import CartItemNotFound, CartNotActive, CartNotFound, DomainError, InvalidCartOwner, InvalidQuantity
from django.db import IntegrityError, transaction

from .configuration import fingerprint, normalize_configuration, to_canonical
from .models import Cart, CartItem
from .pricing import PriceResolver
from .selectors import find_matching_item, get_active_cart

logger = logging.getLogger("cartflow.cart")

DISPLAY_FIELDS = ("product_type", "product_name", "sku", "image_url", "unit_price", "currency")


@dataclass(frozen=True)
class SkippedItem:
    item_id: str
    product_id: str
    code: str
    message: str


@dataclass
class CartValidation:
    cart: Cart
    skipped: list = field(default_factory=list)


def _reload(cart: Cart) -> Cart:
    return Cart.objects.prefetch_related("items").get(pk=cart.pk)


def _touch(cart: Cart) -> None:
    cart.save(update_fields=["updated_at"])


def _log(event: str, cart: Cart, **fields) -> None:
    extra = {
        "event": event,
        "cart_id": str(cart.id),
        "tenant_id": str(cart.tenant_id),
        "user_id": str(cart.user_id) if cart.user_id else None,
        "guest": cart.user_id is None,
    }
    extra.update(fields)
    logger.info(event, extra=extra)


@transaction.atomic
def get_or_create_cart(*, tenant, user_id=None, session_id: Optional[str] = None, lock: bool = False) -> Cart:
    """Return the caller's active cart, creating an empty one if missing."""

    try:
        return get_active_cart(tenant=tenant, user_id=user_id, session_id=session_id, lock=lock)
    except CartNotFound:
        pass

    try:
        with transaction.atomic():
            cart = Cart.objects.create(
                tenant=tenant,
                user_id=user_id,
                session_id=None if user_id is not None else session_id,
            )
    except IntegrityError:
        # A concurrent request created the cart first.
        return get_active_cart(tenant=tenant, user_id=user_id, session_id=session_id, lock=lock)
    _log("cart.created", cart)
    return cart


def _owned_cart(*, tenant, user_id, session_id) -> Cart:
    cart = get_active_cart(tenant=tenant, user_id=user_id, session_id=session_id, lock=True)
    if not cart.is_active:
        raise CartNotActive()
    return cart


def _owned_item(*, cart: Cart, item_id) -> CartItem:
    try:
        return CartItem.objects.select_for_update().get(id=item_id, cart=cart)
    except CartItem.DoesNotExist:
        raise CartItemNotFound()


@transaction.atomic
def add_item(
    *,
    tenant,
    resolver: PriceResolver,
    user_id=None,
    session_id: Optional[str] = None,
    product_id,
    variant_id=None,
    quantity: int,
    configuration=None,
) -> Cart:
    """Add a product to the cart.

    A line with the same product, variant and configuration fingerprint has
    its quantity increased; its price and display fields stay as they were.
    Otherwise the product is priced through the catalog and a new line is
    appended.
    """

    if quantity < 1:
        raise InvalidQuantity("quantity must be at least 1")
    cart = get_or_create_cart(tenant=tenant, user_id=user_id, session_id=session_id, lock=True)
    if not cart.is_active:
        raise CartNotActive()

    normalized = normalize_configuration(configuration)
    config_hash = fingerprint(normalized)

    item = find_matching_item(cart=cart, product_id=product_id, variant_id=variant_id, config_hash=config_hash)
    if item is not None:
        item.quantity += quantity
        item.save(update_fields=["quantity", "updated_at"])
        _log("cart.item_updated", cart, item_id=str(item.id), product_id=str(product_id), quantity=item.quantity)
    else:
        info = resolver.resolve_product(
            tenant_code=tenant.code,
            product_id=product_id,
            variant_id=variant_id,
            quantity=quantity,
            configuration=normalized,
        )
        item = CartItem.objects.create(
            cart=cart,
            product_id=product_id,
            variant_id=variant_id,
            product_type=info.product_type,
            product_name=info.name,
            sku=info.sku,
            image_url=info.image_url,
            quantity=quantity,
            unit_price=info.unit_price,
            currency=info.currency,
            configuration=to_canonical(normalized),
            config_hash=config_hash,
        )
        _log("cart.item_added", cart, item_id=str(item.id), product_id=str(product_id), quantity=quantity)

    _touch(cart)
    return _reload(cart)


@transaction.atomic
def update_item_quantity(*, tenant, user_id=None, session_id: Optional[str] = None, item_id, quantity: int) -> Cart:
    """Set the quantity of a line in the caller's active cart."""

    if quantity < 1:
        raise InvalidQuantity("quantity must be at least 1")
    try:
        cart = _owned_cart(tenant=tenant, user_id=user_id, session_id=session_id)
    except CartNotFound:
        raise CartItemNotFound()
    item = _owned_item(cart=cart, item_id=item_id)
    item.quantity = quantity
    item.save(update_fields=["quantity", "updated_at"])
    _touch(cart)
    _log("cart.item_updated", cart, item_id=str(item.id), quantity=quantity)
    return _reload(cart)


@transaction.atomic
def remove_item(*, tenant, user_id=None, session_id: Optional[str] = None, item_id) -> Cart:
    """Remove a line from the caller's active cart."""

    try:
        cart = _owned_cart(tenant=tenant, user_id=user_id, session_id=session_id)
    except CartNotFound:
        raise CartItemNotFound()
    item = _owned_item(cart=cart, item_id=item_id)
    item.delete()
    _touch(cart)
    _log("cart.item_removed", cart, item_id=str(item_id))
    return _reload(cart)


@transaction.atomic
def clear_cart(*, tenant, user_id=None, session_id: Optional[str] = None) -> Cart:
    """Delete every line of the caller's active cart; the cart stays active."""

    cart = _owned_cart(tenant=tenant, user_id=user_id, session_id=session_id)
    CartItem.objects.filter(cart=cart).delete()
    _touch(cart)
    _log("cart.cleared", cart)
    return _reload(cart)


@transaction.atomic
def validate_cart(
    *, tenant, resolver: PriceResolver, user_id=None, session_id: Optional[str] = None
) -> CartValidation:
    """Re-price every line and refresh its display fields.

    Lines the catalog can no longer resolve are left as they are and
    reported in `CartValidation.skipped`.
    """

    cart = _owned_cart(tenant=tenant, user_id=user_id, session_id=session_id)
    skipped = []
    for item in CartItem.objects.select_for_update().filter(cart=cart):
        try:
            info = resolver.resolve_product(
                tenant_code=tenant.code,
                product_id=item.product_id,
                variant_id=item.variant_id,
                quantity=item.quantity,
                configuration=normalize_configuration(item.configuration),
            )
        except DomainError as exc:
            skipped.append(
                SkippedItem(item_id=str(item.id), product_id=str(item.product_id), code=exc.code, message=exc.message)
            )
            logger.warning(
                "cart.item_validation_skipped",
                extra={
                    "event": "cart.item_validation_skipped",
                    "cart_id": str(cart.id),
                    "item_id": str(item.id),
                    "code": exc.code,
                    "error": exc.message,
                },
            )
            continue

        item.product_type = info.product_type
        item.product_name = info.name
        item.sku = info.sku
        item.image_url = info.image_url
        item.unit_price = info.unit_price
        item.currency = info.currency
        item.save(update_fields=[*DISPLAY_FIELDS, "updated_at"])

    _touch(cart)
    _log("cart.validated", cart, skipped=len(skipped))
    return CartValidation(cart=_reload(cart), skipped=skipped)


@transaction.atomic
def merge_carts(*, tenant, user_id, session_id: Optional[str]) -> Cart:
    """Move every line of the guest cart into the user's cart.

    Lines are moved as they are, without combining duplicates. The guest
    cart is marked merged. Without a guest cart the user's cart is returned.
    """

    if user_id is None or not session_id:
        raise InvalidCartOwner("merging requires both a user and a session")

    guest = (
        Cart.objects.select_for_update()
        .filter(tenant=tenant, session_id=session_id, status=Cart.STATUS_ACTIVE)
        .first()
    )
    user_cart = get_or_create_cart(tenant=tenant, user_id=user_id, lock=True)
    if guest is None:
        return _reload(user_cart)

    moved = CartItem.objects.filter(cart=guest).update(cart=user_cart)
    guest.status = Cart.STATUS_MERGED
    guest.save(update_fields=["status", "updated_at"])
    _touch(user_cart)
    _log("cart.merged", user_cart, guest_cart_id=str(guest.id), session_id=session_id, moved=moved)
    return _reload(user_cart)


@transaction.atomic
def complete_cart(*, tenant, user_id=None, session_id: Optional[str] = None) -> Cart:
    """Mark the caller's active cart completed after a successful checkout."""

    cart = _owned_cart(tenant=tenant, user_id=user_id, session_id=session_id)
    cart.status = Cart.STATUS_COMPLETED
    cart.save(update_fields=["status", "updated_at"])
    _log("cart.completed", cart)
    return _reload(cart)
