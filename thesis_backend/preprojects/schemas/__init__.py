"""Pre-project schemas for API requests and responses."""

from .pre_projects import (
    AdvisorResponseCreateSchema,
    AdvisorResponseSchema,
    PersonSchema,
    PreProjectCreateSchema,
    PreProjectDetailSchema,
    PreProjectListSchema,
    PreProjectUpdateSchema,
    ResetAdvisorsSchema,
)

__all__ = [
    "PersonSchema",
    "AdvisorResponseSchema",
    "PreProjectListSchema",
    "PreProjectDetailSchema",
    "PreProjectCreateSchema",
    "PreProjectUpdateSchema",
    "AdvisorResponseCreateSchema",
    "ResetAdvisorsSchema",
]
