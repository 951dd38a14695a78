from django.apps import AppConfig

from admin_api.logging import get_logger

logger = get_logger("apps")


class AdminApiConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "admin_api"
    verbose_name = "Admin API"

    def ready(self) -> None:
        from admin_api.registry import registry

        registry.load_from_settings()
        logger.debug(
            "admin entities registered",
            context={"entities": registry.names()},
        )
