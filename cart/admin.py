"""Admin registration for cart models.

Carts are read-mostly in the admin: support staff inspect lines and can
clear or complete a cart through the same services the API uses.
"""

from common.errors import DomainError
from django.contrib import admin, messages

from .models import Cart, CartItem
from .services import clear_cart, complete_cart


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    can_delete = False
    fields = (
        "product_id",
        "variant_id",
        "product_type",
        "product_name",
        "sku",
        "quantity",
        "unit_price",
        "currency",
        "config_hash",
        "created_at",
    )
    readonly_fields = fields


class OwnerTypeFilter(admin.SimpleListFilter):
    title = "owner type"
    parameter_name = "owner_type"

    def lookups(self, request, model_admin):
        return (
            ("user", "User carts"),
            ("guest", "Guest carts"),
        )

    def queryset(self, request, queryset):
        value = self.value()
        if value == "user":
            return queryset.filter(user_id__isnull=False)
        if value == "guest":
            return queryset.filter(user_id__isnull=True)
        return queryset


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ("id", "tenant", "user_id", "session_id", "status", "updated_at", "created_at")
    list_filter = ("status", "tenant", OwnerTypeFilter)
    search_fields = ("=id", "=user_id", "session_id")
    ordering = ("-updated_at",)
    readonly_fields = ("id", "tenant", "user_id", "session_id", "created_at", "updated_at")
    inlines = [CartItemInline]
    list_select_related = ("tenant",)
    actions = ["action_clear_cart", "action_complete_cart"]

    def _run(self, request, queryset, service, verb):
        successes = 0
        failures = 0
        for cart in queryset.filter(status=Cart.STATUS_ACTIVE).select_related("tenant"):
            try:
                service(tenant=cart.tenant, user_id=cart.user_id, session_id=cart.session_id)
                successes += 1
            except DomainError:
                failures += 1
        if successes:
            messages.success(request, f"{verb} {successes} cart(s).")
        if failures:
            messages.error(request, f"Failed to update {failures} cart(s).")

    @admin.action(description="Clear cart (keep status active)")
    def action_clear_cart(self, request, queryset):
        self._run(request, queryset, clear_cart, "Cleared")

    @admin.action(description="Mark cart completed")
    def action_complete_cart(self, request, queryset):
        self._run(request, queryset, complete_cart, "Completed")


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ("id", "cart", "product_id", "product_type", "quantity", "unit_price", "currency", "updated_at")
    list_filter = ("product_type",)
    search_fields = ("sku", "product_name", "=product_id", "=cart__id")
    ordering = ("-created_at",)
    readonly_fields = ("config_hash", "created_at", "updated_at")
    raw_id_fields = ("cart",)
