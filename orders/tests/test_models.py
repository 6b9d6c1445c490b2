from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.db import IntegrityError
from django.utils import timezone
from orders.models import IdempotencyKey, ImmutableRowError, OrderItem, OrderStatusLog
from orders.tests.factories import OrderFactory, OrderItemFactory, OrderStatusLogFactory


@pytest.mark.django_db
def test_order_items_are_append_only():
    item = OrderItemFactory()

    item.quantity = 5
    with pytest.raises(ImmutableRowError):
        item.save()
    with pytest.raises(ImmutableRowError):
        item.delete()
    assert OrderItem.objects.get(pk=item.pk).quantity == 2


@pytest.mark.django_db
def test_status_history_is_append_only():
    log = OrderStatusLogFactory()

    log.note = "rewritten"
    with pytest.raises(ImmutableRowError):
        log.save()
    assert OrderStatusLog.objects.get(pk=log.pk).note == "Order created from checkout"


@pytest.mark.django_db
def test_order_numbers_are_unique_per_tenant():
    order = OrderFactory()
    OrderFactory(order_number=order.order_number, tenant__code="other")

    with pytest.raises(IntegrityError):
        OrderFactory(order_number=order.order_number, tenant=order.tenant)


@pytest.mark.django_db
def test_cleanup_idempotency_deletes_expired_keys():
    now = timezone.now()
    IdempotencyKey.objects.create(key="old", scope="s", path="/p", method="POST", expires_at=now - timedelta(hours=1))
    IdempotencyKey.objects.create(key="new", scope="s", path="/p", method="POST", expires_at=now + timedelta(hours=1))

    out = StringIO()
    call_command("cleanup_idempotency", "--dry-run", stdout=out)
    assert "1 expired" in out.getvalue()
    assert IdempotencyKey.objects.count() == 2

    call_command("cleanup_idempotency", stdout=StringIO())
    assert list(IdempotencyKey.objects.values_list("key", flat=True)) == ["new"]
