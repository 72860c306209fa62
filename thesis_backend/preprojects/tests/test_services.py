"""
Tests for the pre-project lifecycle services.
"""

import logging
import uuid
from unittest.mock import patch

import pytest
from django.contrib.auth.models import Group
from django.core import mail
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils import timezone

from thesis_backend.core.exceptions import AlreadyAcceptedError
from thesis_backend.core.exceptions import DuplicateActiveProjectError
from thesis_backend.core.exceptions import NotFoundError
from thesis_backend.core.exceptions import NotOwnerError
from thesis_backend.core.exceptions import PermissionDeniedError
from thesis_backend.core.exceptions import SimilarProjectsError
from thesis_backend.core.exceptions import UnknownEmailError
from thesis_backend.core.exceptions import ValidationError
from thesis_backend.core.roles import Role
from thesis_backend.preprojects.advisor_responses import submit_response
from thesis_backend.preprojects.models import AdvisorResponse
from thesis_backend.preprojects.models import PreProject
from thesis_backend.preprojects.models import PreProjectStudent
from thesis_backend.preprojects.models import ResponseStatus
from thesis_backend.preprojects.services import create_pre_project
from thesis_backend.preprojects.services import delete_pre_project
from thesis_backend.preprojects.services import list_pre_projects
from thesis_backend.preprojects.services import update_pre_project
from thesis_backend.preprojects.similarity import SimilarProject
from thesis_backend.preprojects.tests.factories import PreProjectFactory
from thesis_backend.users.tests.factories import UserFactory


@pytest.fixture
def owner(db):
    """The student creating pre-projects."""
    return UserFactory(email="owner@test.com")


@pytest.fixture
def admin_user(db):
    """A user with the Admin role."""
    user = UserFactory(email="admin@test.com")
    user.groups.add(Group.objects.get_or_create(name=Role.ADMIN.value)[0])
    return user


@pytest.fixture
def advisors(db):
    return [UserFactory(email=f"advisor{i}@test.com") for i in range(3)]


def project_data(**overrides):
    data = {
        "name": "Reconnaissance d'écriture",
        "description": "Reconnaître des manuscrits anciens.",
        "file_description": "",
        "year": timezone.now().year,
        "season": "spring",
    }
    data.update(overrides)
    return data


def stored_file(name="pre_projects/doc.pdf") -> str:
    return default_storage.save(name, ContentFile(b"%PDF-1.4"))


@pytest.mark.django_db
class TestCreatePreProject:
    """Tests for create_pre_project."""

    def test_create_with_students_and_advisors(self, owner, advisors):
        """Test the aggregate holds the owner, the co-students and pending advisors."""
        student = UserFactory(email="student@test.com")

        aggregate = create_pre_project(
            owner,
            project_data(),
            student_emails=["student@test.com"],
            advisor_emails=["advisor0@test.com", "advisor1@test.com"],
        )

        assert aggregate.owner_id == owner.id
        assert set(aggregate.student_ids) == {owner.id, student.id}
        assert set(aggregate.advisor_ids) == {advisors[0].id, advisors[1].id}
        assert all(a.status == ResponseStatus.PENDING for a in aggregate.advisors)
        assert aggregate.accepted_advisor is None
        assert aggregate.can_update is True

    def test_owner_listed_twice_is_collapsed(self, owner, advisors):
        """Test listing the owner among students does not duplicate them."""
        aggregate = create_pre_project(
            owner,
            project_data(),
            student_emails=["OWNER@test.com"],
            advisor_emails=["advisor0@test.com", "advisor0@test.com"],
        )

        assert aggregate.student_ids == [owner.id]
        assert aggregate.advisor_ids == [advisors[0].id]

    def test_with_discussants_and_file(self, owner, advisors):
        """Test discussants and the file reference are stored."""
        discussant = UserFactory(email="discussant@test.com")

        aggregate = create_pre_project(
            owner,
            project_data(file_description="Cahier des charges"),
            student_emails=[],
            advisor_emails=["advisor0@test.com"],
            discussant_emails=["discussant@test.com"],
            file_reference="pre_projects/abc/doc.pdf",
        )

        assert aggregate.discussant_ids == [discussant.id]
        assert aggregate.file == "pre_projects/abc/doc.pdf"
        assert aggregate.file_description == "Cahier des charges"

    def test_unknown_email_aborts(self, owner, advisors):
        """Test an unknown advisor email fails before anything is written."""
        with pytest.raises(UnknownEmailError) as exc_info:
            create_pre_project(owner, project_data(), [], ["nobody@test.com"])

        assert "advisor_emails" in exc_info.value.details
        assert not PreProject.objects.exists()

    def test_student_with_active_pre_project(self, owner, advisors):
        """Test a co-student already in a pre-project is named in the error."""
        busy = UserFactory(email="busy@test.com")
        PreProjectFactory(owner=busy)

        with pytest.raises(DuplicateActiveProjectError) as exc_info:
            create_pre_project(owner, project_data(), ["busy@test.com"], ["advisor0@test.com"])

        assert exc_info.value.details == {"students": "busy@test.com"}
        assert PreProject.objects.count() == 1

    def test_owner_with_active_pre_project(self, owner, advisors):
        """Test the owner cannot create a second pre-project."""
        PreProjectFactory(owner=owner)

        with pytest.raises(DuplicateActiveProjectError):
            create_pre_project(owner, project_data(), [], ["advisor0@test.com"])

    def test_validation_errors(self, owner):
        """Test business rules are checked and reported per field."""
        with pytest.raises(ValidationError) as exc_info:
            create_pre_project(owner, project_data(name="ab", year=2000), [], [])

        assert {"name", "year", "advisors"} <= set(exc_info.value.details)
        assert not PreProject.objects.exists()

    def test_advisors_notified_after_commit(self, owner, advisors, django_capture_on_commit_callbacks):
        """Test each solicited advisor gets an email once the pre-project exists."""
        with django_capture_on_commit_callbacks(execute=True):
            create_pre_project(owner, project_data(), [], ["advisor0@test.com", "advisor1@test.com"])

        assert sorted(m.to[0] for m in mail.outbox) == ["advisor0@test.com", "advisor1@test.com"]

    def test_similar_project_rejected(self, owner, advisors, settings):
        """Test a high similarity score blocks the creation when the check is on."""
        settings.SIMILARITY_CHECK_ENABLED = True
        similar = [SimilarProject("42", "Ancien projet", "", 87.5, "books")]

        with patch("thesis_backend.preprojects.similarity.check_similarity", return_value=similar):
            with pytest.raises(SimilarProjectsError):
                create_pre_project(owner, project_data(), [], ["advisor0@test.com"])

        assert not PreProject.objects.exists()


@pytest.mark.django_db
class TestUpdatePreProject:
    """Tests for update_pre_project."""

    @pytest.fixture
    def pre_project(self, owner, advisors):
        return PreProjectFactory(
            owner=owner,
            advisors=advisors[:2],
            discussants=[UserFactory(email="discussant@test.com")],
        )

    def test_only_year_changes(self, pre_project, owner):
        """Test fields left out of the update keep their value."""
        next_year = timezone.now().year + 1

        aggregate = update_pre_project(pre_project.id, owner, {"year": next_year})

        assert aggregate.year == next_year
        assert aggregate.name == pre_project.name
        assert aggregate.description == pre_project.description
        assert aggregate.season == pre_project.season
        assert aggregate.student_ids == [owner.id]
        assert len(aggregate.advisors) == 2
        assert len(aggregate.discussants) == 1

    def test_empty_discussant_list_clears(self, pre_project, owner):
        """Test an explicit empty discussant list removes every discussant."""
        aggregate = update_pre_project(pre_project.id, owner, {}, discussant_emails=[])

        assert aggregate.discussants == []
        assert len(aggregate.advisors) == 2

    def test_empty_student_list_rejected(self, pre_project, owner):
        """Test students cannot be emptied."""
        with pytest.raises(ValidationError) as exc_info:
            update_pre_project(pre_project.id, owner, {}, student_emails=[])

        assert "students" in exc_info.value.details

    def test_students_must_keep_owner(self, pre_project, owner):
        """Test the owner cannot be removed from the students."""
        UserFactory(email="other@test.com")

        with pytest.raises(ValidationError):
            update_pre_project(pre_project.id, owner, {}, student_emails=["other@test.com"])

    def test_add_student(self, pre_project, owner):
        """Test a new student joins the pre-project."""
        student = UserFactory(email="new@test.com")

        aggregate = update_pre_project(
            pre_project.id, owner, {}, student_emails=["owner@test.com", "new@test.com"]
        )

        assert set(aggregate.student_ids) == {owner.id, student.id}

    def test_added_student_with_other_pre_project(self, pre_project, owner):
        """Test a student busy elsewhere cannot be added."""
        busy = UserFactory(email="busy@test.com")
        PreProjectFactory(owner=busy)

        with pytest.raises(DuplicateActiveProjectError):
            update_pre_project(pre_project.id, owner, {}, student_emails=["owner@test.com", "busy@test.com"])

        assert not PreProjectStudent.objects.filter(pre_project=pre_project, student=busy).exists()

    def test_advisor_diff_keeps_answers(self, pre_project, owner, advisors):
        """Test kept advisors keep their answer, removed ones go and new ones start pending."""
        submit_response(pre_project.id, advisors[0], ResponseStatus.REJECTED)

        aggregate = update_pre_project(
            pre_project.id, owner, {}, advisor_emails=["advisor0@test.com", "advisor2@test.com"]
        )

        statuses = {a.advisor_id: a.status for a in aggregate.advisors}
        assert statuses == {
            advisors[0].id: ResponseStatus.REJECTED,
            advisors[2].id: ResponseStatus.PENDING,
        }

    def test_removing_accepted_advisor_frees_slot(self, pre_project, owner, advisors):
        """Test dropping the accepted advisor clears accepted_advisor."""
        submit_response(pre_project.id, advisors[0], ResponseStatus.ACCEPTED)

        aggregate = update_pre_project(pre_project.id, owner, {}, advisor_emails=["advisor1@test.com"])

        assert aggregate.accepted_advisor is None
        assert aggregate.advisor_ids == [advisors[1].id]

    def test_removing_accepted_advisor_warns(self, pre_project, owner, advisors, caplog):
        """Test dropping the accepted advisor logs a warning since the others stay rejected."""
        submit_response(pre_project.id, advisors[0], ResponseStatus.ACCEPTED)

        with caplog.at_level(logging.WARNING, logger="thesis_backend.preprojects.services"):
            aggregate = update_pre_project(pre_project.id, owner, {}, advisor_emails=["advisor1@test.com"])

        assert [a.status for a in aggregate.advisors] == [ResponseStatus.REJECTED]
        assert "remaining responses stay rejected" in caplog.text

    def test_no_new_advisor_once_accepted(self, pre_project, owner, advisors, django_capture_on_commit_callbacks):
        """Test an accepted pre-project cannot solicit another advisor."""
        submit_response(pre_project.id, advisors[0], ResponseStatus.ACCEPTED)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(AlreadyAcceptedError):
                update_pre_project(
                    pre_project.id,
                    owner,
                    {"year": pre_project.year + 1},
                    advisor_emails=["advisor0@test.com", "advisor1@test.com", "advisor2@test.com"],
                )

        pre_project.refresh_from_db()
        assert callbacks == []
        assert pre_project.year == timezone.now().year
        assert pre_project.accepted_advisor_id == advisors[0].id
        statuses = dict(
            AdvisorResponse.objects.filter(pre_project=pre_project).values_list("advisor_id", "status")
        )
        assert statuses == {
            advisors[0].id: ResponseStatus.ACCEPTED,
            advisors[1].id: ResponseStatus.REJECTED,
        }

    def test_accepted_pre_project_can_drop_rejected_advisor(self, pre_project, owner, advisors):
        """Test removing a rejected advisor is still allowed after acceptance."""
        submit_response(pre_project.id, advisors[0], ResponseStatus.ACCEPTED)

        aggregate = update_pre_project(pre_project.id, owner, {}, advisor_emails=["advisor0@test.com"])

        assert aggregate.accepted_advisor_id == advisors[0].id
        assert aggregate.advisor_ids == [advisors[0].id]

    def test_non_owner_forbidden(self, pre_project):
        """Test another student cannot update the pre-project."""
        with pytest.raises(NotOwnerError):
            update_pre_project(pre_project.id, UserFactory(), {"name": "Nouveau nom"})

    def test_locked_pre_project(self, pre_project, owner):
        """Test the owner cannot edit once can_update is off."""
        PreProject.objects.filter(id=pre_project.id).update(can_update=False)

        with pytest.raises(PermissionDeniedError):
            update_pre_project(pre_project.id, owner, {"name": "Nouveau nom"})

    def test_owner_cannot_grade(self, pre_project, owner):
        """Test degree is reserved to administrators."""
        with pytest.raises(PermissionDeniedError) as exc_info:
            update_pre_project(pre_project.id, owner, {"degree": 90})

        assert "degree" in exc_info.value.details

    def test_admin_grades_and_locks(self, pre_project, admin_user):
        """Test an administrator sets the degree and locks edits, even when locked."""
        PreProject.objects.filter(id=pre_project.id).update(can_update=False)

        aggregate = update_pre_project(pre_project.id, admin_user, {"degree": 85, "can_update": False})

        assert aggregate.degree == 85
        assert aggregate.can_update is False

    def test_invalid_degree(self, pre_project, admin_user):
        """Test a degree above 100 is rejected."""
        with pytest.raises(ValidationError):
            update_pre_project(pre_project.id, admin_user, {"degree": 150})

    def test_unknown_pre_project(self, owner):
        """Test updating a missing pre-project raises NotFoundError."""
        with pytest.raises(NotFoundError):
            update_pre_project(uuid.uuid4(), owner, {"year": timezone.now().year})

    def test_old_file_deleted_after_commit(self, pre_project, owner, django_capture_on_commit_callbacks):
        """Test replacing the file removes the previous one only after commit."""
        old_reference = stored_file("pre_projects/old.pdf")
        PreProject.objects.filter(id=pre_project.id).update(file=old_reference)
        new_reference = stored_file("pre_projects/new.pdf")

        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            aggregate = update_pre_project(pre_project.id, owner, {}, file_reference=new_reference)

        assert aggregate.file == new_reference
        assert default_storage.exists(old_reference)

        for callback in callbacks:
            callback()

        assert not default_storage.exists(old_reference)
        assert default_storage.exists(new_reference)

    def test_failed_update_keeps_old_file(self, pre_project, owner, django_capture_on_commit_callbacks):
        """Test an update that fails validation deletes nothing."""
        old_reference = stored_file("pre_projects/old.pdf")
        PreProject.objects.filter(id=pre_project.id).update(file=old_reference)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(ValidationError):
                update_pre_project(pre_project.id, owner, {"name": "x"}, file_reference="pre_projects/new.pdf")

        assert callbacks == []
        assert default_storage.exists(old_reference)


@pytest.mark.django_db
class TestDeletePreProject:
    """Tests for delete_pre_project."""

    def test_owner_deletes(self, owner, advisors):
        """Test the owner deletes the pre-project and its relations."""
        pre_project = PreProjectFactory(owner=owner, advisors=advisors)

        delete_pre_project(pre_project.id, owner)

        assert not PreProject.objects.filter(id=pre_project.id).exists()
        assert not AdvisorResponse.objects.filter(pre_project_id=pre_project.id).exists()
        assert not PreProjectStudent.objects.filter(student=owner).exists()

    def test_non_owner_forbidden(self, owner):
        """Test a non-owner cannot delete and the pre-project remains."""
        pre_project = PreProjectFactory(owner=owner)

        with pytest.raises(NotOwnerError):
            delete_pre_project(pre_project.id, UserFactory())

        assert PreProject.objects.filter(id=pre_project.id).exists()

    def test_unknown_pre_project(self, owner):
        """Test deleting a missing pre-project raises NotFoundError."""
        with pytest.raises(NotFoundError):
            delete_pre_project(uuid.uuid4(), owner)

    def test_file_removed_after_commit(self, owner, django_capture_on_commit_callbacks):
        """Test the attached file is deleted once the row is gone."""
        reference = stored_file()
        pre_project = PreProjectFactory(owner=owner, file=reference)

        with django_capture_on_commit_callbacks(execute=True):
            delete_pre_project(pre_project.id, owner)

        assert not default_storage.exists(reference)

    def test_file_deletion_failure_is_logged(self, owner, django_capture_on_commit_callbacks, caplog):
        """Test a storage failure does not undo the deletion."""
        pre_project = PreProjectFactory(owner=owner, file="pre_projects/doc.pdf")

        with patch("thesis_backend.core.storage.default_storage") as storage:
            storage.delete.side_effect = OSError("disk gone")
            with django_capture_on_commit_callbacks(execute=True):
                delete_pre_project(pre_project.id, owner)

        assert not PreProject.objects.filter(id=pre_project.id).exists()
        assert "Failed to delete file" in caplog.text

    def test_owner_can_start_again(self, owner, advisors):
        """Test deleting frees the owner for a new pre-project."""
        pre_project = PreProjectFactory(owner=owner)
        delete_pre_project(pre_project.id, owner)

        aggregate = create_pre_project(owner, project_data(), [], ["advisor0@test.com"])

        assert aggregate.owner_id == owner.id


@pytest.mark.django_db
class TestListPreProjects:
    """Tests for list_pre_projects."""

    def test_filters(self, owner):
        """Test filtering by year, season and membership."""
        year = timezone.now().year
        mine = PreProjectFactory(owner=owner, year=year, season="fall")
        other = PreProjectFactory(year=year + 1, season="spring")

        assert list(list_pre_projects(year=year + 1)) == [other]
        assert list(list_pre_projects(season="fall")) == [mine]
        assert list(list_pre_projects(user=owner, mine=True)) == [mine]

    def test_newest_first(self):
        """Test pre-projects are ordered by creation date, newest first."""
        first = PreProjectFactory()
        second = PreProjectFactory()

        assert list(list_pre_projects()) == [second, first]

    def test_advisor_sees_solicitations(self):
        """Test 'mine' includes pre-projects where the user is an advisor."""
        advisor = UserFactory()
        solicited = PreProjectFactory(advisors=[advisor])
        PreProjectFactory()

        assert list(list_pre_projects(user=advisor, mine=True)) == [solicited]
