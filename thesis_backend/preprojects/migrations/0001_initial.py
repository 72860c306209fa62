import uuid

import django.db.models.deletion
import django.utils.timezone
import django_fsm
import model_utils.fields
from django.conf import settings
from django.db import migrations
from django.db import models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="PreProject",
            fields=[
                (
                    "created",
                    model_utils.fields.AutoCreatedField(
                        default=django.utils.timezone.now, editable=False, verbose_name="created"
                    ),
                ),
                (
                    "modified",
                    model_utils.fields.AutoLastModifiedField(
                        default=django.utils.timezone.now, editable=False, verbose_name="modified"
                    ),
                ),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=600, verbose_name="name")),
                ("description", models.TextField(blank=True, verbose_name="description")),
                (
                    "file",
                    models.CharField(
                        blank=True,
                        help_text="Storage reference of the attached document",
                        max_length=500,
                        null=True,
                        verbose_name="file",
                    ),
                ),
                ("file_description", models.TextField(blank=True, verbose_name="file description")),
                ("year", models.PositiveSmallIntegerField(verbose_name="year")),
                (
                    "season",
                    models.CharField(
                        choices=[("spring", "Printemps"), ("fall", "Automne")],
                        max_length=10,
                        verbose_name="season",
                    ),
                ),
                (
                    "can_update",
                    models.BooleanField(
                        default=True,
                        help_text="Whether the owner may still edit the pre-project",
                        verbose_name="can update",
                    ),
                ),
                (
                    "degree",
                    models.PositiveSmallIntegerField(
                        blank=True, help_text="Grade out of 100", null=True, verbose_name="degree"
                    ),
                ),
                (
                    "accepted_advisor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="accepted_pre_projects",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="accepted advisor",
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        help_text="The student who created the pre-project",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="owned_pre_projects",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="owner",
                    ),
                ),
            ],
            options={
                "verbose_name": "pre-project",
                "verbose_name_plural": "pre-projects",
                "ordering": ["-created"],
            },
        ),
        migrations.CreateModel(
            name="AdvisorResponse",
            fields=[
                (
                    "created",
                    model_utils.fields.AutoCreatedField(
                        default=django.utils.timezone.now, editable=False, verbose_name="created"
                    ),
                ),
                (
                    "modified",
                    model_utils.fields.AutoLastModifiedField(
                        default=django.utils.timezone.now, editable=False, verbose_name="modified"
                    ),
                ),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[("pending", "En attente"), ("accepted", "Accepté"), ("rejected", "Refusé")],
                        default="pending",
                        max_length=50,
                        verbose_name="status",
                    ),
                ),
                (
                    "advisor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="advisor_responses",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="advisor",
                    ),
                ),
                (
                    "pre_project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="advisor_responses",
                        to="preprojects.preproject",
                        verbose_name="pre-project",
                    ),
                ),
            ],
            options={
                "verbose_name": "advisor response",
                "verbose_name_plural": "advisor responses",
                "ordering": ["created"],
                "constraints": [
                    models.UniqueConstraint(fields=("pre_project", "advisor"), name="unique_advisor_response"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PreProjectStudent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "pre_project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="student_memberships",
                        to="preprojects.preproject",
                        verbose_name="pre-project",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="pre_project_memberships",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="student",
                    ),
                ),
            ],
            options={
                "verbose_name": "pre-project student",
                "verbose_name_plural": "pre-project students",
                "constraints": [
                    models.UniqueConstraint(fields=("student",), name="one_active_pre_project_per_student"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PreProjectDiscussant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "discussant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="pre_project_discussions",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="discussant",
                    ),
                ),
                (
                    "pre_project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="discussant_memberships",
                        to="preprojects.preproject",
                        verbose_name="pre-project",
                    ),
                ),
            ],
            options={
                "verbose_name": "pre-project discussant",
                "verbose_name_plural": "pre-project discussants",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("pre_project", "discussant"), name="unique_pre_project_discussant"
                    ),
                ],
            },
        ),
        migrations.AddField(
            model_name="preproject",
            name="advisors",
            field=models.ManyToManyField(
                related_name="solicited_pre_projects",
                through="preprojects.AdvisorResponse",
                to=settings.AUTH_USER_MODEL,
                verbose_name="advisors",
            ),
        ),
        migrations.AddField(
            model_name="preproject",
            name="discussants",
            field=models.ManyToManyField(
                blank=True,
                related_name="discussed_pre_projects",
                through="preprojects.PreProjectDiscussant",
                to=settings.AUTH_USER_MODEL,
                verbose_name="discussants",
            ),
        ),
        migrations.AddField(
            model_name="preproject",
            name="students",
            field=models.ManyToManyField(
                related_name="pre_projects",
                through="preprojects.PreProjectStudent",
                to=settings.AUTH_USER_MODEL,
                verbose_name="students",
            ),
        ),
    ]
