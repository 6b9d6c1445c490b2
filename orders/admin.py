"""Admin registration for orders.

Lines and status history are shown read-only. Staff move orders through
fulfilment with actions that go through the status state machine, so every
change is validated and logged in the history.
"""

from common.errors import InvalidStatusTransition
from django.contrib import admin, messages

from .models import IdempotencyKey, Order, OrderItem, OrderStatusLog
from .services import transition_order


class ReadOnlyInline(admin.TabularInline):
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


class OrderItemInline(ReadOnlyInline):
    model = OrderItem
    fields = ("product_name", "sku", "product_type", "quantity", "unit_price", "total_price", "currency")
    readonly_fields = fields


class OrderStatusLogInline(ReadOnlyInline):
    model = OrderStatusLog
    fields = ("from_status", "to_status", "changed_by", "note", "created_at")
    readonly_fields = fields


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "tenant", "status", "user_id", "total", "currency", "created_at")
    list_filter = ("status", "tenant", "created_at")
    search_fields = ("order_number", "=user_id")
    date_hierarchy = "created_at"
    list_select_related = ("tenant",)
    readonly_fields = (
        "id",
        "tenant",
        "user_id",
        "order_number",
        "status",
        "subtotal",
        "tax_amount",
        "total",
        "currency",
        "created_at",
        "updated_at",
    )
    inlines = [OrderItemInline, OrderStatusLogInline]
    actions = ["mark_processing", "mark_shipped", "mark_delivered"]

    def has_delete_permission(self, request, obj=None):
        return False

    def _transition(self, request, queryset, to_status):
        moved = 0
        rejected = 0
        for order in queryset:
            try:
                transition_order(order=order, to_status=to_status, note=f"Marked {to_status} by {request.user}")
                moved += 1
            except InvalidStatusTransition:
                rejected += 1
        if moved:
            messages.success(request, f"Marked {moved} order(s) as {to_status}.")
        if rejected:
            messages.warning(request, f"Skipped {rejected} order(s) that cannot move to {to_status}.")

    @admin.action(description="Mark as processing")
    def mark_processing(self, request, queryset):
        self._transition(request, queryset, Order.STATUS_PROCESSING)

    @admin.action(description="Mark as shipped")
    def mark_shipped(self, request, queryset):
        self._transition(request, queryset, Order.STATUS_SHIPPED)

    @admin.action(description="Mark as delivered")
    def mark_delivered(self, request, queryset):
        self._transition(request, queryset, Order.STATUS_DELIVERED)


@admin.register(IdempotencyKey)
class IdempotencyKeyAdmin(admin.ModelAdmin):
    list_display = ("id", "key", "scope", "path", "method", "response_code", "created_at", "expires_at")
    list_filter = ("method", "response_code", "created_at")
    search_fields = ("key", "scope", "path")
    date_hierarchy = "created_at"
