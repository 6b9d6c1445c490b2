from django.apps import AppConfig


class TenantsConfig(AppConfig):
    """App configuration for tenant records (isolated customer organizations)."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "tenants"
    verbose_name = "Tenants"
