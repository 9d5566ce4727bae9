from __future__ import annotations

import logging
from typing import Any

import requests

from ..config.loader import ApiConfig
from ..errors import ProjectSubmitError
from ..models.bulk_project import BulkProject

"""HTTP client for the external project-creation API.

POST {base_url}/api/projects with the camelCase project payload. The API
answers 201 with ``{"project": {...}}``; the echoed project (at least its id)
is what the caller redirects to. One attempt only, no retries.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "PROJECTS_PATH",
    "ProjectApiClient",
]

PROJECTS_PATH = "/api/projects"
SUBMIT_FAILED_MESSAGE = "Failed to save project. Please try again."


class ProjectApiClient:
    name = "api"

    def __init__(self, config: ApiConfig, session: requests.Session | None = None) -> None:
        self.base_url = config.base_url.rstrip("/")
        self.timeout = config.timeout_seconds
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", "application/json")
        if config.token:
            self.session.headers["Authorization"] = f"Bearer {config.token}"

    @property
    def projects_url(self) -> str:
        return f"{self.base_url}{PROJECTS_PATH}"

    def create_project(self, project: BulkProject) -> BulkProject:
        """Submit ``project`` and return the persisted echo.

        Raises:
            ProjectSubmitError: transport failure, non-2xx status, or a body
                without a project id
        """
        try:
            response = self.session.post(self.projects_url, json=project.to_payload(), timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("POST %s failed: %s", self.projects_url, e)
            raise ProjectSubmitError(SUBMIT_FAILED_MESSAGE) from e

        if not response.ok:
            logger.error(
                "POST %s returned %s: %s", self.projects_url, response.status_code, _error_detail(response)
            )
            raise ProjectSubmitError(SUBMIT_FAILED_MESSAGE)

        try:
            body = response.json()
            echoed = body["project"]
            if not isinstance(echoed, dict):
                raise TypeError(f"project is {type(echoed).__name__}, expected an object")
            created = BulkProject.from_payload(echoed)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error("POST %s returned an unexpected body: %s", self.projects_url, e)
            raise ProjectSubmitError(SUBMIT_FAILED_MESSAGE) from e

        logger.info("project=%s created via API rows=%d", created.id, len(project.rows))
        return created


def _error_detail(response: requests.Response) -> Any:
    try:
        return response.json().get("error", response.text)
    except (ValueError, AttributeError):
        return response.text
