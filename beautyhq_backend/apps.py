from django.apps import AppConfig
from typing import ClassVar


class BeautyHQBackendConfig(AppConfig):
    default_auto_field: ClassVar[str] = "django.db.models.BigAutoField"
    name = "beautyhq_backend"
    verbose_name = "BeautyHQ Backend"
