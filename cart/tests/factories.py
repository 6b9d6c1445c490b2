import uuid
from decimal import Decimal

import factory
from cart.models import Cart, CartItem
from factory.django import DjangoModelFactory


class CartFactory(DjangoModelFactory):
    class Meta:
        model = Cart

    tenant = factory.SubFactory("tenants.tests.factories.TenantFactory")
    user_id = factory.LazyFunction(uuid.uuid4)
    session_id = None
    status = Cart.STATUS_ACTIVE

    class Params:
        guest = factory.Trait(user_id=None, session_id=factory.LazyFunction(lambda: str(uuid.uuid4())))


class CartItemFactory(DjangoModelFactory):
    class Meta:
        model = CartItem

    cart = factory.SubFactory(CartFactory)
    product_id = factory.LazyFunction(uuid.uuid4)
    variant_id = None
    product_type = "simple"
    product_name = factory.Faker("word")
    sku = factory.Sequence(lambda n: f"SKU-{n:04d}")
    quantity = 1
    unit_price = Decimal("10.00")
    currency = "CHF"
    configuration = None
    config_hash = ""
