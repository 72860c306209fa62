"""
Pre-project API controllers.

- PreProjectController: CRUD, advisor responses, reset and promotion
  (/api/pre-projects/)
"""

from thesis_backend.preprojects.api.pre_projects import PreProjectController

__all__ = [
    "PreProjectController",
]
