"""
Data migration to create the role groups.

Groups:
- Étudiant: Students who create pre-projects
- Encadrant: Advisors who answer solicitations
- Discutant: Reviewers attached to pre-projects
- Admin: Administrators who grade and promote pre-projects
"""

from django.db import migrations

ROLES = [
    "Étudiant",
    "Encadrant",
    "Discutant",
    "Admin",
]


def create_role_groups(apps, schema_editor):
    """Create the role groups."""
    Group = apps.get_model("auth", "Group")

    for role_name in ROLES:
        Group.objects.get_or_create(name=role_name)


def remove_role_groups(apps, schema_editor):
    """Remove the role groups (reverse migration)."""
    Group = apps.get_model("auth", "Group")

    Group.objects.filter(name__in=ROLES).delete()


class Migration(migrations.Migration):
    """Create role groups."""

    dependencies = [
        ("users", "0001_initial"),
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.RunPython(create_role_groups, remove_role_groups),
    ]
