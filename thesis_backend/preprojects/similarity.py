"""
Client for the similarity scoring service.

The check is advisory: it is off unless ``SIMILARITY_CHECK_ENABLED`` is set,
and when the service cannot be reached the check is skipped.
"""

import logging
from dataclasses import dataclass

import httpx
from django.conf import settings

from thesis_backend.core.exceptions import SimilarProjectsError
from thesis_backend.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimilarProject:
    project_id: str | None
    project_name: str
    project_description: str
    similarity_score: float
    source_table: str


def _parse_similar_projects(payload) -> list[SimilarProject]:
    """Keep only entries with a numeric score and a string source table."""
    if not isinstance(payload, dict):
        raise UpstreamError("Réponse inattendue du service de similarité.")

    results = []
    for entry in payload.get("similar_projects") or []:
        if not isinstance(entry, dict):
            continue
        score = entry.get("similarity_score")
        source = entry.get("source_table")
        if isinstance(score, bool) or not isinstance(score, (int, float)) or not isinstance(source, str):
            continue
        results.append(
            SimilarProject(
                project_id=None if entry.get("project_id") is None else str(entry.get("project_id")),
                project_name=str(entry.get("project_name") or ""),
                project_description=str(entry.get("project_description") or ""),
                similarity_score=float(score),
                source_table=source,
            )
        )
    return results


def check_similarity(name: str, description: str, threshold: float | None = None) -> list[SimilarProject]:
    """
    Ask the scoring service for projects close to ``name``/``description``.

    Raises UpstreamError when the service fails or answers garbage.
    """
    body = {
        "project_name": name,
        "project_description": description,
        "similarity_threshold": settings.SIMILARITY_THRESHOLD if threshold is None else threshold,
    }
    try:
        response = httpx.post(
            settings.SIMILARITY_SERVICE_URL,
            json=body,
            timeout=settings.SIMILARITY_TIMEOUT,
        )
        response.raise_for_status()
        payload = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise UpstreamError("Le service de similarité n'a pas répondu correctement.") from exc

    return _parse_similar_projects(payload)


def ensure_not_similar(name: str, description: str) -> None:
    """
    Reject the candidate with SimilarProjectsError if a score is too high.

    Does nothing when the check is disabled or the service fails.
    """
    if not settings.SIMILARITY_CHECK_ENABLED:
        return

    try:
        similar = check_similarity(name, description or "")
    except UpstreamError:
        logger.warning("Similarity check skipped for '%s'", name, exc_info=True)
        return

    too_close = [project for project in similar if project.similarity_score > settings.SIMILARITY_REJECT_SCORE]
    if too_close:
        logger.info("Similarity check rejected '%s' (%d close projects)", name, len(too_close))
        raise SimilarProjectsError(
            details={
                "similar_projects": [
                    {
                        "project_id": project.project_id,
                        "project_name": project.project_name,
                        "project_description": project.project_description,
                        "similarity_score": project.similarity_score,
                        "source_table": project.source_table,
                    }
                    for project in too_close
                ]
            }
        )
