import uuid

import django.db.models.deletion
import django.utils.timezone
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
            name="Book",
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
                ("file", models.CharField(blank=True, max_length=500, null=True, verbose_name="file")),
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
                ("degree", models.PositiveSmallIntegerField(blank=True, null=True, verbose_name="degree")),
                (
                    "source_pre_project_id",
                    models.UUIDField(
                        help_text="Id of the pre-project this book was promoted from",
                        unique=True,
                        verbose_name="source pre-project",
                    ),
                ),
                (
                    "advisor",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="advised_books",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="advisor",
                    ),
                ),
                (
                    "discussants",
                    models.ManyToManyField(
                        blank=True,
                        related_name="discussed_books",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="discussants",
                    ),
                ),
                (
                    "students",
                    models.ManyToManyField(
                        related_name="books",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="students",
                    ),
                ),
            ],
            options={
                "verbose_name": "book",
                "verbose_name_plural": "books",
                "ordering": ["-year", "-created"],
            },
        ),
    ]
