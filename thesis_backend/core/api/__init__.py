from thesis_backend.core.api.base import BaseAPI
from thesis_backend.core.api.permissions import IsAuthenticated

__all__ = ["BaseAPI", "IsAuthenticated"]
