"""Shared fixtures: an in-memory stand-in for the REST gateway."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from devconnect.http import RequestFailed
from devconnect.models import (
    Application,
    ApplicationPage,
    ApplicationStatus,
    JobRef,
    PageInfo,
    RelationConfirmation,
)

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_application(application_id="A1", status="PENDING", job_id="job_1", updated_at=None):
    return Application(
        id=application_id,
        status=status,
        applied_at=T0,
        updated_at=updated_at or T0,
        job=JobRef(id=job_id, title="Backend Engineer", company="Acme"),
    )


class FakeGateway:
    """Gateway double. Records calls; can fail, be gated, or override outcomes.

    ``gate``: when set to an asyncio.Event, every call waits for it.
    ``fail_with``: exception raised by every call while set.
    ``settle_status``: status the server "decides" instead of the requested one.
    """

    def __init__(self):
        self.applications: dict[str, Application] = {}
        self.application_pages: dict[int, list[Application]] = {}
        self.calls: list[tuple] = []
        self.gate = None
        self.fail_with = None
        self.settle_status = None
        self.follow_confirmation = RelationConfirmation()
        self.pin_confirmation = RelationConfirmation()

    async def _enter(self, name, *args):
        self.calls.append((name, *args))
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.fail_with is not None:
            raise self.fail_with

    def call_names(self):
        return [c[0] for c in self.calls]

    def _existing(self, application_id):
        if application_id not in self.applications:
            raise RequestFailed("Server returned 404: Application not found", status_code=404)
        return self.applications[application_id]

    def _confirm(self, application_id, status):
        app = self._existing(application_id)
        confirmed = app.model_copy(update={
            "status": ApplicationStatus(self.settle_status or status),
            "updated_at": app.updated_at + timedelta(minutes=5),
        })
        self.applications[application_id] = confirmed
        return confirmed

    # --- Applications ---

    async def get_application(self, application_id):
        await self._enter("get_application", application_id)
        return self._existing(application_id)

    async def update_application_status(self, application_id, status):
        await self._enter("update_application_status", application_id, status)
        return self._confirm(application_id, status)

    async def withdraw_application(self, application_id):
        await self._enter("withdraw_application", application_id)
        return self._confirm(application_id, ApplicationStatus.WITHDRAWN)

    async def apply_to_job(self, job_id, cover_letter=None, resume_url=None):
        await self._enter("apply_to_job", job_id, cover_letter, resume_url)
        app = make_application(f"A{len(self.applications) + 1}", job_id=job_id)
        self.applications[app.id] = app
        return app

    async def list_applications(self, filters, page=1, limit=10):
        await self._enter("list_applications", filters, page, limit)
        items = self.application_pages.get(page, [])
        return ApplicationPage(
            applications=items,
            pagination=PageInfo(total=len(items), page=page, limit=limit),
        )

    # --- Social graph ---

    async def follow(self, user_id):
        await self._enter("follow", user_id)
        return self.follow_confirmation

    async def unfollow(self, user_id):
        await self._enter("unfollow", user_id)
        return self.follow_confirmation

    async def pin(self, developer_id, repo_id):
        await self._enter("pin", developer_id, repo_id)
        return self.pin_confirmation

    async def unpin(self, developer_id, repo_id):
        await self._enter("unpin", developer_id, repo_id)
        return self.pin_confirmation


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def make_app():
    return make_application
