from django.apps import AppConfig


class CommonConfig(AppConfig):
    """Shared infrastructure; owns the process-wide dependency container."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "common"
    container = None

    def ready(self):
        from config.container import build_container

        self.container = build_container()
