"""
Books: the permanent record of a promoted pre-project.
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from thesis_backend.core.models import BaseModel
from thesis_backend.preprojects.models import Season


class Book(BaseModel):
    """
    Archived thesis, created once from an accepted pre-project.

    ``source_pre_project_id`` is unique, so promoting the same pre-project
    twice fails at the database level.
    """

    name = models.CharField(_("name"), max_length=600)
    description = models.TextField(_("description"), blank=True)
    file = models.CharField(_("file"), max_length=500, blank=True, null=True)
    file_description = models.TextField(_("file description"), blank=True)
    year = models.PositiveSmallIntegerField(_("year"))
    season = models.CharField(_("season"), max_length=10, choices=Season.choices)
    degree = models.PositiveSmallIntegerField(_("degree"), null=True, blank=True)
    source_pre_project_id = models.UUIDField(
        _("source pre-project"),
        unique=True,
        help_text=_("Id of the pre-project this book was promoted from"),
    )

    advisor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="advised_books",
        verbose_name=_("advisor"),
    )
    students = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="books",
        verbose_name=_("students"),
    )
    discussants = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="discussed_books",
        verbose_name=_("discussants"),
        blank=True,
    )

    class Meta:
        verbose_name = _("book")
        verbose_name_plural = _("books")
        ordering = ["-year", "-created"]

    def __str__(self) -> str:
        return f"{self.name} ({self.year} {self.season})"
