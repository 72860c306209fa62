"""
Custom exceptions for the thesis backend API.

Services raise these; controllers turn them into responses with
``to_response()``.
"""

from ninja import Schema


class ErrorSchema(Schema):
    """Standard error response schema."""

    code: str
    message: str
    details: dict | None = None


class APIException(Exception):
    """Base exception for API errors."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "Une erreur interne est survenue."

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict | None = None,
    ):
        self.message = message or self.__class__.message
        self.code = code or self.__class__.code
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> tuple[int, ErrorSchema]:
        """Convert exception to API response tuple."""
        return self.status_code, ErrorSchema(
            code=self.code,
            message=self.message,
            details=self.details,
        )


# Authentication Exceptions
class NotAuthenticatedError(APIException):
    """User is not authenticated."""

    status_code = 401
    code = "NOT_AUTHENTICATED"
    message = "Authentification requise."


# Authorization Exceptions
class PermissionDeniedError(APIException):
    """User doesn't have required permissions."""

    status_code = 403
    code = "PERMISSION_DENIED"
    message = "Vous n'avez pas les permissions nécessaires."


class NotOwnerError(APIException):
    """User is not the owner of the resource."""

    status_code = 403
    code = "NOT_OWNER"
    message = "Vous n'êtes pas le propriétaire de cette ressource."


# Resource Exceptions
class NotFoundError(APIException):
    """Resource not found."""

    status_code = 404
    code = "NOT_FOUND"
    message = "Ressource introuvable."


# Validation Exceptions
class ValidationError(APIException):
    """Invalid input data. ``details`` maps each field to its message."""

    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Données invalides."


class InvalidStatusError(ValidationError):
    """Advisor response status is not one of the known values."""

    code = "INVALID_STATUS"
    message = "Statut invalide."


class AdvisorNotSolicitedError(ValidationError):
    """The responding advisor was never solicited for the pre-project."""

    code = "ADVISOR_NOT_SOLICITED"
    message = "Cet encadrant n'est pas sollicité pour ce pré-projet."


class UnknownEmailError(ValidationError):
    """An email could not be resolved to a user."""

    code = "UNKNOWN_EMAIL"
    message = "Adresse email inconnue."


# Conflict Exceptions
class ConflictError(APIException):
    """Request conflicts with the current state of the resource."""

    status_code = 409
    code = "CONFLICT"
    message = "Conflit avec l'état actuel de la ressource."


class DuplicateActiveProjectError(ConflictError):
    """A student already belongs to another pre-project."""

    code = "DUPLICATE_ACTIVE_PROJECT"
    message = "Un étudiant a déjà un pré-projet en cours."


class AlreadyAcceptedError(ConflictError):
    """The pre-project already has an accepted advisor."""

    code = "ALREADY_ACCEPTED"
    message = "Ce pré-projet a déjà été accepté par un autre encadrant."


class ResponseAlreadyFinalError(ConflictError):
    """The advisor response is accepted or rejected and cannot change."""

    code = "RESPONSE_ALREADY_FINAL"
    message = "Cette réponse est définitive."


class NoAcceptedAdvisorError(ConflictError):
    """Promotion requires an accepted advisor."""

    code = "NO_ACCEPTED_ADVISOR"
    message = "Ce pré-projet n'a pas encore d'encadrant accepté."


class SimilarProjectsError(ConflictError):
    """The similarity service found projects that are too close."""

    code = "SIMILAR_PROJECTS"
    message = "Le projet est trop similaire à des projets existants."


# Collaborator Exceptions
class UpstreamError(APIException):
    """An external collaborator (storage, scoring service) failed."""

    status_code = 502
    code = "UPSTREAM_ERROR"
    message = "Un service externe n'a pas répondu correctement."


# File Exceptions
class FileTooLargeError(APIException):
    """File exceeds size limit."""

    status_code = 413
    code = "FILE_TOO_LARGE"
    message = "Le fichier dépasse la taille maximale autorisée."
