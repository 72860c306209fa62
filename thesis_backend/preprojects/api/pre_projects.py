"""
Pre-projects API controller.
"""

import logging
from uuid import UUID

from django.conf import settings
from django.http import HttpRequest
from ninja import File
from ninja import Form
from ninja import UploadedFile
from ninja_extra import api_controller
from ninja_extra import http_delete
from ninja_extra import http_get
from ninja_extra import http_post
from ninja_extra import http_put

from thesis_backend.books.schemas import BookSchema
from thesis_backend.books.services import promote_to_book
from thesis_backend.core.api import BaseAPI
from thesis_backend.core.api import IsAuthenticated
from thesis_backend.core.exceptions import APIException
from thesis_backend.core.exceptions import ErrorSchema
from thesis_backend.core.exceptions import FileTooLargeError
from thesis_backend.core.exceptions import NotAuthenticatedError
from thesis_backend.core.exceptions import NotFoundError
from thesis_backend.core.exceptions import NotOwnerError
from thesis_backend.core.exceptions import PermissionDeniedError
from thesis_backend.core.exceptions import ValidationError
from thesis_backend.core.roles import is_admin
from thesis_backend.core.schemas import MessageSchema
from thesis_backend.core.storage import delete_file
from thesis_backend.core.storage import save_file
from thesis_backend.preprojects.advisor_responses import reset_advisors
from thesis_backend.preprojects.advisor_responses import submit_response
from thesis_backend.preprojects.models import PreProject
from thesis_backend.preprojects.schemas import AdvisorResponseCreateSchema
from thesis_backend.preprojects.schemas import PreProjectCreateSchema
from thesis_backend.preprojects.schemas import PreProjectDetailSchema
from thesis_backend.preprojects.schemas import PreProjectListSchema
from thesis_backend.preprojects.schemas import PreProjectUpdateSchema
from thesis_backend.preprojects.schemas import ResetAdvisorsSchema
from thesis_backend.preprojects.services import create_pre_project
from thesis_backend.preprojects.services import delete_pre_project
from thesis_backend.preprojects.services import get_pre_project
from thesis_backend.preprojects.services import list_pre_projects
from thesis_backend.preprojects.services import update_pre_project
from thesis_backend.users.services import parse_email_list
from thesis_backend.users.services import resolve_users

logger = logging.getLogger(__name__)


def store_upload(upload: UploadedFile) -> str:
    """Check the size limit and save an uploaded pre-project document."""
    if upload.size is not None and upload.size > settings.PRE_PROJECT_MAX_FILE_SIZE:
        raise FileTooLargeError()
    return save_file(upload, settings.PRE_PROJECT_FILE_CATEGORY, upload.name or "document")


@api_controller("/pre-projects", tags=["Pre-projects"], permissions=[IsAuthenticated])
class PreProjectController(BaseAPI):
    """Pre-project lifecycle and advisor solicitation."""

    @http_get(
        "/",
        response={200: list[PreProjectListSchema], 401: ErrorSchema},
        url_name="pre_projects_list",
    )
    def list_pre_projects(
        self,
        request: HttpRequest,
        year: int | None = None,
        season: str | None = None,
        mine: bool = False,
    ):
        """List pre-projects, newest first."""
        if not request.user.is_authenticated:
            return NotAuthenticatedError().to_response()

        pre_projects = list_pre_projects(user=request.user, year=year, season=season, mine=mine)
        return 200, [PreProjectListSchema.from_pre_project(p) for p in pre_projects]

    @http_get(
        "/{pre_project_id}",
        response={200: PreProjectDetailSchema, 401: ErrorSchema, 404: ErrorSchema},
        url_name="pre_projects_detail",
    )
    def get_pre_project(self, request: HttpRequest, pre_project_id: UUID):
        """Get a pre-project with its advisors, students and discussants."""
        if not request.user.is_authenticated:
            return NotAuthenticatedError().to_response()

        try:
            aggregate = get_pre_project(pre_project_id)
        except APIException as exc:
            return exc.to_response()

        return 200, PreProjectDetailSchema.from_aggregate(aggregate)

    @http_post(
        "/",
        response={
            201: PreProjectDetailSchema,
            400: ErrorSchema,
            401: ErrorSchema,
            409: ErrorSchema,
            413: ErrorSchema,
            502: ErrorSchema,
        },
        url_name="pre_projects_create",
    )
    def create_pre_project(
        self,
        request: HttpRequest,
        data: PreProjectCreateSchema = Form(...),
        file: UploadedFile = File(None),
    ):
        """
        Create a pre-project owned by the current user.

        The optional document is stored first and removed again if the
        creation fails.
        """
        if not request.user.is_authenticated:
            return NotAuthenticatedError().to_response()

        file_reference = None
        try:
            if file is not None:
                file_reference = store_upload(file)
            aggregate = create_pre_project(
                owner=request.user,
                data=data.model_dump(include={"name", "description", "file_description", "year", "season"}),
                student_emails=parse_email_list(data.student_emails),
                advisor_emails=parse_email_list(data.advisor_emails),
                discussant_emails=parse_email_list(data.discussant_emails),
                file_reference=file_reference,
            )
        except APIException as exc:
            delete_file(file_reference)
            return exc.to_response()
        except Exception:
            delete_file(file_reference)
            raise

        return 201, PreProjectDetailSchema.from_aggregate(aggregate)

    @http_put(
        "/{pre_project_id}",
        response={
            200: PreProjectDetailSchema,
            400: ErrorSchema,
            401: ErrorSchema,
            403: ErrorSchema,
            404: ErrorSchema,
            409: ErrorSchema,
        },
        url_name="pre_projects_update",
    )
    def update_pre_project(self, request: HttpRequest, pre_project_id: UUID, data: PreProjectUpdateSchema):
        """Apply the supplied fields. Owner while editable, or admin."""
        if not request.user.is_authenticated:
            return NotAuthenticatedError().to_response()

        try:
            aggregate = update_pre_project(
                pre_project_id,
                request.user,
                data.changes(),
                student_emails=data.student_emails,
                advisor_emails=data.advisor_emails,
                discussant_emails=data.discussant_emails,
            )
        except APIException as exc:
            return exc.to_response()

        return 200, PreProjectDetailSchema.from_aggregate(aggregate)

    @http_post(
        "/{pre_project_id}/file",
        response={
            200: PreProjectDetailSchema,
            400: ErrorSchema,
            401: ErrorSchema,
            403: ErrorSchema,
            404: ErrorSchema,
            413: ErrorSchema,
            502: ErrorSchema,
        },
        url_name="pre_projects_file",
    )
    def replace_file(self, request: HttpRequest, pre_project_id: UUID, file: UploadedFile = File(...)):
        """Attach a new document. The previous one is removed after commit."""
        if not request.user.is_authenticated:
            return NotAuthenticatedError().to_response()

        file_reference = None
        try:
            file_reference = store_upload(file)
            aggregate = update_pre_project(pre_project_id, request.user, {}, file_reference=file_reference)
        except APIException as exc:
            delete_file(file_reference)
            return exc.to_response()

        return 200, PreProjectDetailSchema.from_aggregate(aggregate)

    @http_delete(
        "/{pre_project_id}",
        response={200: MessageSchema, 401: ErrorSchema, 403: ErrorSchema, 404: ErrorSchema},
        url_name="pre_projects_delete",
    )
    def delete_pre_project(self, request: HttpRequest, pre_project_id: UUID):
        """Delete a pre-project. Only its owner."""
        if not request.user.is_authenticated:
            return NotAuthenticatedError().to_response()

        try:
            delete_pre_project(pre_project_id, request.user)
        except APIException as exc:
            return exc.to_response()

        return 200, MessageSchema(success=True, message="Pré-projet supprimé avec succès.")

    @http_post(
        "/{pre_project_id}/respond",
        response={
            200: PreProjectDetailSchema,
            400: ErrorSchema,
            401: ErrorSchema,
            404: ErrorSchema,
            409: ErrorSchema,
        },
        url_name="pre_projects_respond",
    )
    def respond(self, request: HttpRequest, pre_project_id: UUID, data: AdvisorResponseCreateSchema):
        """Current advisor accepts, rejects or keeps pending a solicitation."""
        if not request.user.is_authenticated:
            return NotAuthenticatedError().to_response()

        try:
            submit_response(pre_project_id, request.user, data.status)
            aggregate = get_pre_project(pre_project_id)
        except APIException as exc:
            return exc.to_response()

        return 200, PreProjectDetailSchema.from_aggregate(aggregate)

    @http_post(
        "/{pre_project_id}/reset-advisors",
        response={
            200: PreProjectDetailSchema,
            400: ErrorSchema,
            401: ErrorSchema,
            403: ErrorSchema,
            404: ErrorSchema,
        },
        url_name="pre_projects_reset_advisors",
    )
    def reset_advisors(self, request: HttpRequest, pre_project_id: UUID, data: ResetAdvisorsSchema):
        """
        Drop every advisor response and free the accepted-advisor slot.

        ``advisor_emails`` solicits a fresh list right away.
        """
        if not request.user.is_authenticated:
            return NotAuthenticatedError().to_response()

        try:
            pre_project = PreProject.objects.filter(id=pre_project_id).first()
            if pre_project is None:
                raise NotFoundError("Pré-projet introuvable.")
            if not (pre_project.is_owner(request.user) or is_admin(request.user)):
                raise NotOwnerError("Seul le propriétaire peut réinitialiser les encadrants.")

            advisors = None
            if data.advisor_emails is not None:
                advisors = resolve_users(data.advisor_emails, "advisor_emails")
                if len(advisors) > settings.PRE_PROJECT_MAX_ADVISORS:
                    raise ValidationError(
                        details={"advisor_emails": f"Au plus {settings.PRE_PROJECT_MAX_ADVISORS} encadrants."},
                    )
            reset_advisors(pre_project_id, advisors)
            aggregate = get_pre_project(pre_project_id)
        except APIException as exc:
            return exc.to_response()

        return 200, PreProjectDetailSchema.from_aggregate(aggregate)

    @http_post(
        "/{pre_project_id}/promote",
        response={
            201: BookSchema,
            400: ErrorSchema,
            401: ErrorSchema,
            403: ErrorSchema,
            404: ErrorSchema,
            409: ErrorSchema,
        },
        url_name="pre_projects_promote",
    )
    def promote(self, request: HttpRequest, pre_project_id: UUID):
        """Turn an accepted pre-project into a book. Administrators only."""
        if not request.user.is_authenticated:
            return NotAuthenticatedError().to_response()

        if not is_admin(request.user):
            return PermissionDeniedError("Seul un administrateur peut archiver un pré-projet.").to_response()

        try:
            book = promote_to_book(pre_project_id)
        except APIException as exc:
            return exc.to_response()

        return 201, BookSchema.from_book(book)
