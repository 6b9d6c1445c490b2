import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("tenants", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Cart",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user_id", models.UUIDField(blank=True, null=True)),
                ("session_id", models.CharField(blank=True, max_length=64, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("merged", "Merged"), ("completed", "Completed")],
                        db_index=True,
                        default="active",
                        max_length=16,
                    ),
                ),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="carts", to="tenants.tenant"
                    ),
                ),
            ],
            options={
                "ordering": ["-updated_at"],
                "indexes": [
                    models.Index(fields=["tenant", "user_id", "status"], name="cart_cart_tenant__6c1b2e_idx"),
                    models.Index(fields=["tenant", "session_id", "status"], name="cart_cart_tenant__9f4d0a_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("session_id__isnull", True), ("user_id__isnull", False)),
                            models.Q(("session_id__isnull", False), ("user_id__isnull", True)),
                            _connector="OR",
                        ),
                        name="cart_single_owner",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("status", "active"), ("user_id__isnull", False)),
                        fields=("tenant", "user_id"),
                        name="unique_active_cart_per_user",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("session_id__isnull", False), ("status", "active")),
                        fields=("tenant", "session_id"),
                        name="unique_active_cart_per_session",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CartItem",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("product_id", models.UUIDField()),
                ("variant_id", models.UUIDField(blank=True, null=True)),
                (
                    "product_type",
                    models.CharField(
                        choices=[
                            ("simple", "Simple"),
                            ("variant", "Variant"),
                            ("bundle", "Bundle"),
                            ("parametric", "Parametric"),
                        ],
                        default="simple",
                        max_length=16,
                    ),
                ),
                ("product_name", models.CharField(blank=True, default="", max_length=255)),
                ("sku", models.CharField(blank=True, default="", max_length=128)),
                ("image_url", models.CharField(blank=True, default="", max_length=500)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("unit_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("currency", models.CharField(default="CHF", max_length=3)),
                ("configuration", models.JSONField(blank=True, null=True)),
                ("config_hash", models.CharField(blank=True, db_index=True, default="", max_length=64)),
                (
                    "cart",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="items", to="cart.cart"
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(
                        fields=["cart", "product_id", "variant_id", "config_hash"], name="cart_cartit_cart_id_3e7a51_idx"
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gte", 1)), name="cart_item_quantity_positive"
                    ),
                ],
            },
        ),
    ]
