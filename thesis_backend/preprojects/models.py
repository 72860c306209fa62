"""
Models for thesis pre-projects.

Contains:
- PreProject: a thesis proposal owned by a student
- AdvisorResponse: one solicited advisor and their answer (FSM)
- PreProjectStudent: student membership (one active pre-project per student)
- PreProjectDiscussant: optional reviewers
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _
from django_fsm import FSMField
from django_fsm import transition

from thesis_backend.core.models import BaseModel


class Season(models.TextChoices):
    """Academic season a pre-project targets."""

    SPRING = "spring", _("Printemps")
    FALL = "fall", _("Automne")


class ResponseStatus(models.TextChoices):
    """Status choices for advisor responses (FSM states)."""

    PENDING = "pending", _("En attente")
    ACCEPTED = "accepted", _("Accepté")
    REJECTED = "rejected", _("Refusé")


class PreProject(BaseModel):
    """
    Thesis proposal awaiting an advisor.

    ``accepted_advisor`` is only ever set through a conditional update
    guarded by ``accepted_advisor IS NULL``; see
    ``preprojects.advisor_responses.submit_response``.

    Inherits from BaseModel:
        - id: UUID primary key
        - created: auto-set on creation
        - modified: auto-updated on save
    """

    name = models.CharField(
        _("name"),
        max_length=600,
    )
    description = models.TextField(
        _("description"),
        blank=True,
    )
    file = models.CharField(
        _("file"),
        max_length=500,
        blank=True,
        null=True,
        help_text=_("Storage reference of the attached document"),
    )
    file_description = models.TextField(
        _("file description"),
        blank=True,
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="owned_pre_projects",
        verbose_name=_("owner"),
        help_text=_("The student who created the pre-project"),
    )
    accepted_advisor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="accepted_pre_projects",
        verbose_name=_("accepted advisor"),
    )
    year = models.PositiveSmallIntegerField(_("year"))
    season = models.CharField(
        _("season"),
        max_length=10,
        choices=Season.choices,
    )
    can_update = models.BooleanField(
        _("can update"),
        default=True,
        help_text=_("Whether the owner may still edit the pre-project"),
    )
    degree = models.PositiveSmallIntegerField(
        _("degree"),
        null=True,
        blank=True,
        help_text=_("Grade out of 100"),
    )

    students = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="PreProjectStudent",
        related_name="pre_projects",
        verbose_name=_("students"),
    )
    advisors = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="AdvisorResponse",
        related_name="solicited_pre_projects",
        verbose_name=_("advisors"),
    )
    discussants = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="PreProjectDiscussant",
        related_name="discussed_pre_projects",
        verbose_name=_("discussants"),
        blank=True,
    )

    class Meta:
        verbose_name = _("pre-project")
        verbose_name_plural = _("pre-projects")
        ordering = ["-created"]

    def __str__(self) -> str:
        return f"{self.name} ({self.year} {self.season})"

    def is_owner(self, user) -> bool:
        """Check if user owns this pre-project."""
        return self.owner_id == user.id


class AdvisorResponse(BaseModel):
    """
    Answer of one solicited advisor.

    Uses django-fsm for the per-advisor state:
    - pending: solicited, no answer yet (may be re-affirmed)
    - accepted: terminal, the advisor holds the pre-project
    - rejected: terminal, either chosen or forced when a sibling accepted

    Only a reset of the whole pre-project brings an advisor back to pending.
    """

    pre_project = models.ForeignKey(
        PreProject,
        on_delete=models.CASCADE,
        related_name="advisor_responses",
        verbose_name=_("pre-project"),
    )
    advisor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="advisor_responses",
        verbose_name=_("advisor"),
    )
    status = FSMField(
        _("status"),
        default=ResponseStatus.PENDING,
        choices=ResponseStatus.choices,
    )

    class Meta:
        verbose_name = _("advisor response")
        verbose_name_plural = _("advisor responses")
        ordering = ["created"]
        constraints = [
            models.UniqueConstraint(
                fields=["pre_project", "advisor"],
                name="unique_advisor_response",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.advisor} -> {self.pre_project_id} ({self.status})"

    # FSM Transitions

    @transition(field=status, source=ResponseStatus.PENDING, target=ResponseStatus.PENDING)
    def keep_pending(self):
        """Advisor re-affirms they have not decided yet."""
        pass

    @transition(field=status, source=ResponseStatus.PENDING, target=ResponseStatus.ACCEPTED)
    def accept(self):
        """
        Transition from pending to accepted.

        The caller must also claim the pre-project's accepted-advisor slot in
        the same transaction.
        """
        pass

    @transition(field=status, source=ResponseStatus.PENDING, target=ResponseStatus.REJECTED)
    def reject(self):
        """Transition from pending to rejected."""
        pass

    def respond(self, status: str) -> None:
        """Apply the transition matching ``status``."""
        transitions = {
            ResponseStatus.PENDING: self.keep_pending,
            ResponseStatus.ACCEPTED: self.accept,
            ResponseStatus.REJECTED: self.reject,
        }
        transitions[ResponseStatus(status)]()


class PreProjectStudent(models.Model):
    """
    Student membership of a pre-project.

    ``student`` is unique: a student belongs to at most one pre-project at a
    time. Promotion deletes the pre-project, which frees its students.
    """

    pre_project = models.ForeignKey(
        PreProject,
        on_delete=models.CASCADE,
        related_name="student_memberships",
        verbose_name=_("pre-project"),
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="pre_project_memberships",
        verbose_name=_("student"),
    )

    class Meta:
        verbose_name = _("pre-project student")
        verbose_name_plural = _("pre-project students")
        constraints = [
            models.UniqueConstraint(
                fields=["student"],
                name="one_active_pre_project_per_student",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.student} in {self.pre_project_id}"


class PreProjectDiscussant(models.Model):
    """Reviewer attached to a pre-project."""

    pre_project = models.ForeignKey(
        PreProject,
        on_delete=models.CASCADE,
        related_name="discussant_memberships",
        verbose_name=_("pre-project"),
    )
    discussant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="pre_project_discussions",
        verbose_name=_("discussant"),
    )

    class Meta:
        verbose_name = _("pre-project discussant")
        verbose_name_plural = _("pre-project discussants")
        constraints = [
            models.UniqueConstraint(
                fields=["pre_project", "discussant"],
                name="unique_pre_project_discussant",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.discussant} discusses {self.pre_project_id}"
