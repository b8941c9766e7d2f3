"""Remote Resource Gateway: typed async wrapper over the DevConnect REST API.

Owns no state. Each method is one HTTP call whose response is normalized into
the canonical models. Failures propagate uncategorized (``RequestFailed`` or a
pydantic ``ValidationError``); callers classify them with
``devconnect.errors.classify``.

The blocking ``requests`` call runs in a worker thread so every method is a
suspension point for the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from devconnect import config, http, normalize
from devconnect.http import RequestFailed
from devconnect.models import (
    Application,
    ApplicationFilter,
    ApplicationPage,
    ApplicationStatus,
    Job,
    JobPage,
    RelationConfirmation,
    UserPage,
)

logger = logging.getLogger(__name__)


class Gateway:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.base_url = (base_url or config.API_URL).rstrip("/")
        self.token = token if token is not None else config.API_TOKEN
        self.timeout = timeout or config.REQUEST_TIMEOUT

    async def _call(self, method: str, path: str, **kwargs) -> dict:
        func = getattr(http, method)
        try:
            return await asyncio.to_thread(
                func, path, timeout=self.timeout, base_url=self.base_url, token=self.token, **kwargs
            )
        except RequestFailed as e:
            logger.warning(f"{method.upper()} {path} failed: {e.message}")
            raise

    # --- Applications ---

    async def list_applications(
        self, filters: ApplicationFilter, page: int = 1, limit: int = config.PAGE_SIZE
    ) -> ApplicationPage:
        params = {
            "role": filters.role.value,
            "jobId": filters.job_id,
            "status": filters.status.value if filters.status else None,
            "sort": filters.sort,
            "page": page,
            "limit": limit,
        }
        params = {k: v for k, v in params.items() if v is not None}
        data = await self._call("get", "/applications", params=params)
        return normalize.application_page(data, page=page, limit=limit)

    async def get_application(self, application_id: str) -> Application:
        data = await self._call("get", f"/applications/{application_id}")
        return normalize.application(data)

    async def update_application_status(
        self, application_id: str, status: ApplicationStatus
    ) -> Application:
        data = await self._call(
            "patch", f"/applications/{application_id}", json={"status": status.value}
        )
        return normalize.application(data)

    async def withdraw_application(self, application_id: str) -> Application:
        data = await self._call("post", f"/applications/{application_id}/withdraw")
        return normalize.application(data)

    async def apply_to_job(
        self,
        job_id: str,
        cover_letter: Optional[str] = None,
        resume_url: Optional[str] = None,
    ) -> Application:
        body = {"coverLetter": cover_letter, "resumeUrl": resume_url}
        body = {k: v for k, v in body.items() if v is not None}
        data = await self._call("post", f"/jobs/{job_id}/apply", json=body)
        return normalize.application(data)

    # --- Social graph ---

    async def follow(self, user_id: str) -> RelationConfirmation:
        data = await self._call("post", f"/users/{user_id}/follow")
        return normalize.follow_confirmation(data)

    async def unfollow(self, user_id: str) -> RelationConfirmation:
        data = await self._call("delete", f"/users/{user_id}/follow")
        return normalize.follow_confirmation(data)

    async def list_followers(
        self, username: str, page: int = 1, limit: int = config.PAGE_SIZE
    ) -> UserPage:
        data = await self._call(
            "get", f"/users/{username}/followers", params={"page": page, "limit": limit}
        )
        return normalize.user_page(data, page=page, limit=limit)

    async def list_following(
        self, username: str, page: int = 1, limit: int = config.PAGE_SIZE
    ) -> UserPage:
        data = await self._call(
            "get", f"/users/{username}/following", params={"page": page, "limit": limit}
        )
        return normalize.user_page(data, page=page, limit=limit)

    async def pin(self, developer_id: str, repo_id: str) -> RelationConfirmation:
        data = await self._call("post", f"/developers/{developer_id}/pins/{repo_id}")
        return normalize.pin_confirmation(data)

    async def unpin(self, developer_id: str, repo_id: str) -> RelationConfirmation:
        data = await self._call("delete", f"/developers/{developer_id}/pins/{repo_id}")
        return normalize.pin_confirmation(data)

    # --- Jobs ---

    async def get_job(self, job_id: str) -> Job:
        data = await self._call("get", f"/jobs/{job_id}")
        return normalize.job(data)

    async def list_jobs(
        self, filters: Optional[dict] = None, page: int = 1, limit: int = config.PAGE_SIZE
    ) -> JobPage:
        params = {k: v for k, v in (filters or {}).items() if v is not None}
        params.update(page=page, limit=limit)
        data = await self._call("get", "/jobs", params=params)
        return normalize.job_page(data, page=page, limit=limit)
