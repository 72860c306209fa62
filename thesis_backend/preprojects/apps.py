from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class PreProjectsConfig(AppConfig):
    name = "thesis_backend.preprojects"
    verbose_name = _("Pre-project Management")
