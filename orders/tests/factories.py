import uuid
from decimal import Decimal

import factory
from factory.django import DjangoModelFactory
from orders.models import Order, OrderItem, OrderStatusLog


class OrderFactory(DjangoModelFactory):
    class Meta:
        model = Order

    tenant = factory.SubFactory("tenants.tests.factories.TenantFactory")
    user_id = factory.LazyFunction(uuid.uuid4)
    order_number = factory.Sequence(lambda n: f"ORD-20250101-{n + 1:04d}")
    status = Order.STATUS_CONFIRMED
    subtotal = Decimal("20.00")
    tax_amount = Decimal("0.00")
    total = Decimal("20.00")
    currency = "CHF"


class OrderItemFactory(DjangoModelFactory):
    class Meta:
        model = OrderItem

    order = factory.SubFactory(OrderFactory)
    product_id = factory.LazyFunction(uuid.uuid4)
    product_name = factory.Faker("word")
    sku = factory.Sequence(lambda n: f"SKU-{n:04d}")
    quantity = 2
    unit_price = Decimal("10.00")
    total_price = Decimal("20.00")
    currency = "CHF"


class OrderStatusLogFactory(DjangoModelFactory):
    class Meta:
        model = OrderStatusLog

    order = factory.SubFactory(OrderFactory)
    from_status = None
    to_status = factory.SelfAttribute("order.status")
    note = "Order created from checkout"
