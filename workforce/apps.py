from django.apps import AppConfig


class WorkforceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "workforce"
    verbose_name = "Workforce requests"

    def ready(self) -> None:
        # Import signals so the handlers are registered when the app starts.
        from . import signals  # noqa: F401
