"""
Tests for the advisor response state machine.
"""

import threading
import uuid
from unittest.mock import patch

import pytest
from django.core import mail
from django.db import connection

from thesis_backend.core.exceptions import AdvisorNotSolicitedError
from thesis_backend.core.exceptions import AlreadyAcceptedError
from thesis_backend.core.exceptions import InvalidStatusError
from thesis_backend.core.exceptions import NotFoundError
from thesis_backend.core.exceptions import ResponseAlreadyFinalError
from thesis_backend.preprojects.advisor_responses import reset_advisors
from thesis_backend.preprojects.advisor_responses import solicit_advisors
from thesis_backend.preprojects.advisor_responses import submit_response
from thesis_backend.preprojects.models import AdvisorResponse
from thesis_backend.preprojects.models import PreProject
from thesis_backend.preprojects.models import ResponseStatus
from thesis_backend.preprojects.tests.factories import PreProjectFactory
from thesis_backend.users.tests.factories import UserFactory


@pytest.fixture
def advisors(db):
    """Three advisors."""
    return UserFactory.create_batch(3)


@pytest.fixture
def pre_project(advisors):
    """A pre-project soliciting every advisor."""
    return PreProjectFactory(advisors=advisors)


def status_of(pre_project, advisor) -> str:
    return AdvisorResponse.objects.get(pre_project=pre_project, advisor=advisor).status


@pytest.mark.django_db
class TestSubmitResponse:
    """Tests for submit_response."""

    def test_accept_claims_the_pre_project(self, pre_project, advisors):
        """Test the first acceptance sets the accepted advisor and rejects the others."""
        winner, *others = advisors

        submit_response(pre_project.id, winner, ResponseStatus.ACCEPTED)

        pre_project.refresh_from_db()
        assert pre_project.accepted_advisor_id == winner.id
        assert status_of(pre_project, winner) == ResponseStatus.ACCEPTED
        for other in others:
            assert status_of(pre_project, other) == ResponseStatus.REJECTED

    def test_reject_leaves_pre_project_unassigned(self, pre_project, advisors):
        """Test a rejection does not touch the accepted-advisor slot."""
        submit_response(pre_project.id, advisors[0], ResponseStatus.REJECTED)

        pre_project.refresh_from_db()
        assert pre_project.accepted_advisor is None
        assert status_of(pre_project, advisors[0]) == ResponseStatus.REJECTED
        assert status_of(pre_project, advisors[1]) == ResponseStatus.PENDING

    def test_pending_can_be_reaffirmed(self, pre_project, advisors):
        """Test answering pending twice keeps the response pending."""
        submit_response(pre_project.id, advisors[0], ResponseStatus.PENDING)
        submit_response(pre_project.id, advisors[0], ResponseStatus.PENDING)

        assert status_of(pre_project, advisors[0]) == ResponseStatus.PENDING

    def test_repeat_accept_by_winner(self, pre_project, advisors):
        """Test the accepted advisor cannot accept again and nothing changes."""
        submit_response(pre_project.id, advisors[0], ResponseStatus.ACCEPTED)

        with pytest.raises(AlreadyAcceptedError):
            submit_response(pre_project.id, advisors[0], ResponseStatus.ACCEPTED)

        pre_project.refresh_from_db()
        assert pre_project.accepted_advisor_id == advisors[0].id
        assert status_of(pre_project, advisors[0]) == ResponseStatus.ACCEPTED

    def test_second_accept_after_assignment(self, pre_project, advisors):
        """Test another advisor cannot accept an assigned pre-project."""
        submit_response(pre_project.id, advisors[0], ResponseStatus.ACCEPTED)

        with pytest.raises(AlreadyAcceptedError):
            submit_response(pre_project.id, advisors[1], ResponseStatus.ACCEPTED)

        pre_project.refresh_from_db()
        assert pre_project.accepted_advisor_id == advisors[0].id
        assert status_of(pre_project, advisors[1]) == ResponseStatus.REJECTED

    def test_rejected_answer_is_final(self, pre_project, advisors):
        """Test a rejected advisor cannot accept later."""
        submit_response(pre_project.id, advisors[0], ResponseStatus.REJECTED)

        with pytest.raises(ResponseAlreadyFinalError):
            submit_response(pre_project.id, advisors[0], ResponseStatus.ACCEPTED)

        pre_project.refresh_from_db()
        assert pre_project.accepted_advisor is None

    def test_invalid_status(self, pre_project, advisors):
        """Test an unknown status is rejected before anything else."""
        with pytest.raises(InvalidStatusError) as exc_info:
            submit_response(pre_project.id, advisors[0], "maybe")

        assert exc_info.value.code == "INVALID_STATUS"
        assert status_of(pre_project, advisors[0]) == ResponseStatus.PENDING

    def test_unknown_pre_project(self, advisors):
        """Test answering for a missing pre-project raises NotFoundError."""
        with pytest.raises(NotFoundError):
            submit_response(uuid.uuid4(), advisors[0], ResponseStatus.ACCEPTED)

    def test_advisor_not_solicited(self, pre_project):
        """Test an advisor without a response row cannot answer."""
        outsider = UserFactory()

        with pytest.raises(AdvisorNotSolicitedError):
            submit_response(pre_project.id, outsider, ResponseStatus.ACCEPTED)

        pre_project.refresh_from_db()
        assert pre_project.accepted_advisor is None

    def test_lost_claim_rolls_back_response(self, pre_project, advisors):
        """Test a claim lost to a concurrent winner leaves no trace of the loser's answer."""
        winner, loser = advisors[0], advisors[1]
        # The winner commits between the loser's pre-check and its claim.
        AdvisorResponse.objects.filter(pre_project=pre_project, advisor=winner).update(
            status=ResponseStatus.ACCEPTED
        )
        PreProject.objects.filter(id=pre_project.id).update(accepted_advisor=winner)

        with patch(
            "thesis_backend.preprojects.advisor_responses._current_accepted_advisor",
            return_value=None,
        ):
            with pytest.raises(AlreadyAcceptedError):
                submit_response(pre_project.id, loser, ResponseStatus.ACCEPTED)

        pre_project.refresh_from_db()
        assert pre_project.accepted_advisor_id == winner.id
        assert status_of(pre_project, loser) == ResponseStatus.PENDING
        assert AdvisorResponse.objects.filter(
            pre_project=pre_project, status=ResponseStatus.ACCEPTED
        ).count() == 1

    def test_owner_notified_after_commit(self, pre_project, advisors, django_capture_on_commit_callbacks):
        """Test the owner gets an email once the answer is committed."""
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            submit_response(pre_project.id, advisors[0], ResponseStatus.ACCEPTED)

        assert len(callbacks) == 1
        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == [pre_project.owner.email]

    def test_failed_answer_notifies_nobody(self, pre_project, advisors, django_capture_on_commit_callbacks):
        """Test a rejected submission schedules no notification."""
        submit_response(pre_project.id, advisors[0], ResponseStatus.ACCEPTED)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(AlreadyAcceptedError):
                submit_response(pre_project.id, advisors[1], ResponseStatus.ACCEPTED)

        assert callbacks == []


@pytest.mark.django_db
class TestInterleavedAccept:
    """Every advisor passes the pre-check before any claim lands."""

    @pytest.mark.parametrize("winner_index", [0, 1, 2])
    def test_exactly_one_winner(self, pre_project, advisors, winner_index):
        """Test the first claim wins and every later claim is refused."""
        order = advisors[winner_index:] + advisors[:winner_index]
        outcomes = []

        with patch(
            "thesis_backend.preprojects.advisor_responses._current_accepted_advisor",
            return_value=None,
        ):
            for advisor in order:
                try:
                    submit_response(pre_project.id, advisor, ResponseStatus.ACCEPTED)
                    outcomes.append(advisor.id)
                except AlreadyAcceptedError:
                    pass

        winner = order[0]
        pre_project.refresh_from_db()
        assert outcomes == [winner.id]
        assert pre_project.accepted_advisor_id == winner.id
        statuses = dict(
            AdvisorResponse.objects.filter(pre_project=pre_project).values_list("advisor_id", "status")
        )
        assert statuses.pop(winner.id) == ResponseStatus.ACCEPTED
        assert list(statuses.values()) == [ResponseStatus.REJECTED] * (len(advisors) - 1)


@pytest.mark.django_db(transaction=True)
class TestConcurrentAccept:
    """Race between advisors accepting at the same time."""

    def test_exactly_one_winner(self):
        """Test concurrent acceptances produce one winner and rejected siblings."""
        if connection.vendor != "postgresql":
            pytest.skip("Row-level concurrency needs PostgreSQL")

        advisors = UserFactory.create_batch(3)
        pre_project = PreProjectFactory(advisors=advisors)
        barrier = threading.Barrier(len(advisors))
        outcomes = []

        def accept(advisor):
            try:
                barrier.wait()
                submit_response(pre_project.id, advisor, ResponseStatus.ACCEPTED)
                outcomes.append("won")
            except (AlreadyAcceptedError, ResponseAlreadyFinalError):
                outcomes.append("lost")
            finally:
                connection.close()

        threads = [threading.Thread(target=accept, args=(advisor,)) for advisor in advisors]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        pre_project.refresh_from_db()
        assert outcomes.count("won") == 1
        assert outcomes.count("lost") == len(advisors) - 1
        statuses = dict(
            AdvisorResponse.objects.filter(pre_project=pre_project).values_list("advisor_id", "status")
        )
        assert statuses[pre_project.accepted_advisor_id] == ResponseStatus.ACCEPTED
        assert list(statuses.values()).count(ResponseStatus.REJECTED) == len(advisors) - 1


@pytest.mark.django_db
class TestResetAdvisors:
    """Tests for reset_advisors and re-solicitation."""

    def test_reset_clears_responses_and_slot(self, pre_project, advisors):
        """Test a reset removes every response and frees the pre-project."""
        submit_response(pre_project.id, advisors[0], ResponseStatus.ACCEPTED)

        deleted = reset_advisors(pre_project.id)

        pre_project.refresh_from_db()
        assert deleted == 3
        assert pre_project.accepted_advisor is None
        assert not AdvisorResponse.objects.filter(pre_project=pre_project).exists()

    def test_reset_then_resolicit(self, pre_project, advisors):
        """Test advisors solicited again all start pending."""
        submit_response(pre_project.id, advisors[0], ResponseStatus.ACCEPTED)
        fresh = UserFactory.create_batch(2)

        reset_advisors(pre_project.id, [advisors[0], *fresh])

        responses = AdvisorResponse.objects.filter(pre_project=pre_project)
        assert {r.advisor_id for r in responses} == {advisors[0].id, *(a.id for a in fresh)}
        assert all(r.status == ResponseStatus.PENDING for r in responses)

    def test_reset_unknown_pre_project(self):
        """Test resetting a missing pre-project raises NotFoundError."""
        with pytest.raises(NotFoundError):
            reset_advisors(uuid.uuid4())

    def test_accept_possible_after_reset(self, pre_project, advisors):
        """Test a new solicitation can be accepted after a reset."""
        submit_response(pre_project.id, advisors[0], ResponseStatus.ACCEPTED)
        reset_advisors(pre_project.id, [advisors[1]])

        submit_response(pre_project.id, advisors[1], ResponseStatus.ACCEPTED)

        pre_project.refresh_from_db()
        assert pre_project.accepted_advisor_id == advisors[1].id


@pytest.mark.django_db
class TestSolicitAdvisors:
    """Tests for solicit_advisors."""

    def test_skips_already_solicited(self, pre_project, advisors):
        """Test advisors with a response row are not solicited twice."""
        newcomer = UserFactory()

        created = solicit_advisors(pre_project, [advisors[0], newcomer])

        assert [r.advisor_id for r in created] == [newcomer.id]
        assert AdvisorResponse.objects.filter(pre_project=pre_project).count() == 4

    def test_new_advisors_notified(self, pre_project, django_capture_on_commit_callbacks):
        """Test each newly solicited advisor receives an email after commit."""
        newcomers = UserFactory.create_batch(2)

        with django_capture_on_commit_callbacks(execute=True):
            solicit_advisors(pre_project, newcomers)

        assert sorted(m.to[0] for m in mail.outbox) == sorted(a.email for a in newcomers)
