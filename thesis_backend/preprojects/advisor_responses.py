"""
Advisor response state machine.

Each solicited advisor has one ``AdvisorResponse`` row per pre-project. The
pre-project's ``accepted_advisor`` slot is claimed with a conditional update
(``accepted_advisor IS NULL``) so that, among concurrent acceptances, exactly
one wins. The winner's claim and the forced rejection of every sibling row
commit together with the response write, or not at all.
"""

import logging

from django.db import transaction
from django.utils import timezone
from django_fsm import TransitionNotAllowed

from thesis_backend.core.exceptions import AdvisorNotSolicitedError
from thesis_backend.core.exceptions import AlreadyAcceptedError
from thesis_backend.core.exceptions import InvalidStatusError
from thesis_backend.core.exceptions import NotFoundError
from thesis_backend.core.exceptions import ResponseAlreadyFinalError
from thesis_backend.core.validator import permitted_value
from thesis_backend.preprojects.models import AdvisorResponse
from thesis_backend.preprojects.models import PreProject
from thesis_backend.preprojects.models import ResponseStatus
from thesis_backend.preprojects.notifications import notify_many_on_commit
from thesis_backend.preprojects.notifications import notify_on_commit
from thesis_backend.preprojects.validation import validate_advisor_response

logger = logging.getLogger(__name__)


def _current_accepted_advisor(pre_project_id):
    """Return the id of the accepted advisor, or None if the slot is free."""
    return (
        PreProject.objects.filter(id=pre_project_id)
        .values_list("accepted_advisor_id", flat=True)
        .first()
    )


def submit_response(pre_project_id, advisor, status: str) -> AdvisorResponse:
    """
    Record ``advisor``'s answer for a pre-project.

    Raises:
        InvalidStatusError: status is not pending, accepted or rejected
        NotFoundError: the pre-project does not exist
        AlreadyAcceptedError: the pre-project already has an accepted advisor,
            or another advisor won the claim concurrently
        AdvisorNotSolicitedError: the advisor was never solicited
        ResponseAlreadyFinalError: the advisor's answer is already final
    """
    if not permitted_value(status, ResponseStatus.values):
        raise InvalidStatusError(details={"status": "Le statut doit être 'pending', 'accepted' ou 'rejected'."})

    with transaction.atomic():
        pre_project = PreProject.objects.select_related("owner").filter(id=pre_project_id).first()
        if pre_project is None:
            raise NotFoundError("Pré-projet introuvable.")

        accepted_advisor_id = _current_accepted_advisor(pre_project_id)
        if accepted_advisor_id == advisor.id:
            raise AlreadyAcceptedError("Vous avez déjà accepté ce pré-projet.")
        if accepted_advisor_id is not None:
            raise AlreadyAcceptedError()

        solicited_ids = list(
            AdvisorResponse.objects.filter(pre_project_id=pre_project_id).values_list("advisor_id", flat=True)
        )
        errors = validate_advisor_response(advisor.id, status, solicited_ids)
        if errors:
            raise AdvisorNotSolicitedError(details=errors)

        now = timezone.now()
        accepting = status == ResponseStatus.ACCEPTED
        # The slot is claimed before the advisor's own row is locked, so the
        # winner never waits on a row held by a losing advisor.
        if accepting:
            claimed = PreProject.objects.filter(
                id=pre_project_id,
                accepted_advisor__isnull=True,
            ).update(accepted_advisor=advisor, modified=now)
            if claimed == 0:
                logger.info(
                    "LOST CLAIM: advisor %s accepted pre-project %s after another advisor",
                    advisor.id,
                    pre_project_id,
                )
                raise AlreadyAcceptedError()

        response = (
            AdvisorResponse.objects.select_for_update()
            .filter(pre_project_id=pre_project_id, advisor=advisor)
            .first()
        )
        if response is None:
            raise AdvisorNotSolicitedError()
        try:
            response.respond(status)
        except TransitionNotAllowed as exc:
            raise ResponseAlreadyFinalError() from exc
        response.save()

        if accepting:
            rejected = (
                AdvisorResponse.objects.filter(pre_project_id=pre_project_id)
                .exclude(advisor=advisor)
                .update(status=ResponseStatus.REJECTED, modified=now)
            )
            logger.info(
                "ACCEPTED: advisor %s claimed pre-project %s (%d other responses rejected)",
                advisor.id,
                pre_project_id,
                rejected,
            )
        else:
            logger.info(
                "RESPONSE: advisor %s answered %s for pre-project %s",
                advisor.id,
                status,
                pre_project_id,
            )

        notify_on_commit(
            pre_project.owner.email,
            "Réponse d'un encadrant",
            {
                "message": f"{advisor.get_full_name() or advisor.email} a répondu à votre pré-projet.",
                "pre_project": pre_project.name,
                "status": status,
            },
        )

    return response


def solicit_advisors(pre_project: PreProject, advisors) -> list[AdvisorResponse]:
    """
    Add pending responses for ``advisors`` not yet solicited.

    Must run inside the caller's transaction.
    """
    existing = set(
        AdvisorResponse.objects.filter(pre_project=pre_project).values_list("advisor_id", flat=True)
    )
    new_responses = [
        AdvisorResponse(pre_project=pre_project, advisor=advisor)
        for advisor in advisors
        if advisor.id not in existing
    ]
    created = AdvisorResponse.objects.bulk_create(new_responses)

    if created:
        logger.info("Solicited %d advisors for pre-project %s", len(created), pre_project.id)
        notify_many_on_commit(
            [response.advisor.email for response in created],
            "Nouvelle sollicitation d'encadrement",
            {
                "message": "Vous êtes sollicité pour encadrer un pré-projet.",
                "pre_project": pre_project.name,
            },
        )
    return created


def reset_advisors(pre_project_id, advisors=None) -> int:
    """
    Delete every advisor response and free the accepted-advisor slot.

    When ``advisors`` is given, they are solicited again with pending
    responses in the same transaction. Returns the number of deleted rows.
    """
    with transaction.atomic():
        pre_project = PreProject.objects.select_for_update().filter(id=pre_project_id).first()
        if pre_project is None:
            raise NotFoundError("Pré-projet introuvable.")

        deleted, _ = AdvisorResponse.objects.filter(pre_project=pre_project).delete()
        pre_project.accepted_advisor = None
        pre_project.save(update_fields=["accepted_advisor", "modified"])
        logger.info("RESET: %d advisor responses removed from pre-project %s", deleted, pre_project_id)

        if advisors:
            solicit_advisors(pre_project, advisors)

    return deleted
