"""Selectors for cart lookups and totals."""

import logging
from decimal import Decimal
from typing import Optional

from common.errors import CartNotFound, InvalidCartOwner
from django.conf import settings

from .models import Cart, CartItem

logger = logging.getLogger("cartflow.cart")


def get_active_cart(*, tenant, user_id=None, session_id: Optional[str] = None, lock: bool = False) -> Cart:
    """Return the caller's active cart.

    A user's own cart wins. When an identified user has none but still
    carries a guest session with an active cart, that cart is claimed in
    place: its owner becomes the user and the session is cleared. Items are
    not merged here; see `cart.services.merge_carts`.
    """

    if user_id is None and not session_id:
        raise InvalidCartOwner("either user_id or session_id is required")

    carts = Cart.objects.filter(tenant=tenant, status=Cart.STATUS_ACTIVE)
    if lock:
        carts = carts.select_for_update()

    if user_id is not None:
        cart = carts.filter(user_id=user_id).first()
        if cart is not None:
            return cart
        if session_id:
            guest = carts.filter(session_id=session_id).first()
            if guest is not None:
                guest.user_id = user_id
                guest.session_id = None
                guest.save(update_fields=["user_id", "session_id", "updated_at"])
                logger.info(
                    "cart.claimed",
                    extra={
                        "event": "cart.claimed",
                        "cart_id": str(guest.id),
                        "tenant": tenant.code,
                        "user_id": str(user_id),
                        "session_id": session_id,
                    },
                )
                return guest
        raise CartNotFound()

    cart = carts.filter(session_id=session_id).first()
    if cart is None:
        raise CartNotFound()
    return cart


def find_matching_item(*, cart: Cart, product_id, variant_id=None, config_hash: str = "") -> Optional[CartItem]:
    """Find the line with the same product, variant and configuration fingerprint."""

    items = CartItem.objects.select_for_update().filter(cart=cart, product_id=product_id, config_hash=config_hash)
    if variant_id is None:
        items = items.filter(variant_id__isnull=True)
    else:
        items = items.filter(variant_id=variant_id)
    return items.first()


def cart_totals(*, cart: Cart) -> dict:
    """Compute cart totals from its items.

    Tax, shipping and discounts are not part of the cart; subtotal only.
    """

    items = list(cart.items.all())
    subtotal = sum((item.total_price for item in items), Decimal("0.00"))
    currency = items[0].currency if items and items[0].currency else settings.DEFAULT_CURRENCY
    return {
        "subtotal": subtotal,
        "currency": currency,
        "item_count": sum(item.quantity for item in items),
    }
