"""
DevConnect API client, synchronous facade.

Each function runs one operation of the client core against the configured
server (``DEVCONNECT_API_URL``) and returns terse text, or the full data
with ``full=True``. Failures come back as ``ERROR: <CODE>: <message>`` (or an
error dict) rather than exceptions.

Usage:
    from devconnect import tool

    tool.get_applications(role="recruiter", job_id="job_123")
    tool.transition_application("app_1", "SHORTLISTED", role="recruiter")
    tool.follow("user_42")
"""

from __future__ import annotations

import asyncio
from typing import Optional

from devconnect.errors import GATEWAY_ERRORS, DevConnectError, InvalidTransition, classify
from devconnect.lifecycle import parse_role
from devconnect.models import (
    Application,
    ApplicationFilter,
    ApplicationStatus,
    RelationState,
    UserPage,
    UserSummary,
)
from devconnect.session import Session


def _session() -> Session:
    return Session()


def _run(coro):
    """Run a coroutine to completion, classifying gateway failures."""
    try:
        return asyncio.run(coro)
    except GATEWAY_ERRORS as e:
        raise classify(e) from e


# --- Terse Output Formatters ---


def _sanitize(s: Optional[str]) -> str:
    """Replace pipe delimiters in source data."""
    return (s or "").replace("|", "-")


def _fmt_application(a: Application) -> str:
    """Format application as pipe-delimited string for terse output."""
    applicant = a.applicant.username if a.applicant and a.applicant.username else "-"
    return "|".join([
        a.id,
        _sanitize(a.job.company) or "-",
        _sanitize(a.job.title) or "-",
        a.status.value.lower(),
        _sanitize(applicant),
        a.updated_at.date().isoformat(),
    ])


def _fmt_user(u: UserSummary) -> str:
    return "|".join([u.id, _sanitize(u.username), _sanitize(u.name) or "-"])


def _fmt_relation(label: str, state: RelationState) -> str:
    text = f"{label}: {'yes' if state.active else 'no'}"
    if state.count is not None:
        text += f" | count: {state.count}"
    return text


def _error(e: DevConnectError, full: bool) -> str | dict:
    if full:
        return {"status": "error", "code": e.code, "error": e.message}
    return f"ERROR: {e.code}: {e.message}"


def _parse_status(status: str) -> ApplicationStatus:
    try:
        return ApplicationStatus(status.strip().upper())
    except ValueError:
        raise InvalidTransition(f"Unknown status: {status}") from None


# --- Applications ---


def get_applications(
    role: str = "applicant",
    job_id: Optional[str] = None,
    status: Optional[str] = None,
    page: int = 1,
    full: bool = False,
) -> str | dict:
    """List one page of applications.

    Returns (terse): one line per application, "id|company|title|status|applicant|updated"
    """
    async def _go():
        filters = ApplicationFilter(
            role=parse_role(role),
            job_id=job_id,
            status=_parse_status(status) if status else None,
        )
        return await _session().gateway.list_applications(filters, page=page)

    try:
        result = _run(_go())
    except DevConnectError as e:
        return _error(e, full)
    if full:
        return result.model_dump(mode="json")
    if not result.applications:
        return "No applications"
    return "\n".join(_fmt_application(a) for a in result.applications)


def get_application(application_id: str, full: bool = False) -> str | dict:
    """Fetch one application."""
    try:
        application = _run(_session().applications.load(application_id))
    except DevConnectError as e:
        return _error(e, full)
    if full:
        return application.model_dump(mode="json")
    return _fmt_application(application)


def apply_to_job(
    job_id: str,
    cover_letter: Optional[str] = None,
    resume_url: Optional[str] = None,
    full: bool = False,
) -> str | dict:
    """Apply to a job as the current (applicant) user."""
    try:
        application = _run(_session().applications.apply(job_id, cover_letter, resume_url))
    except DevConnectError as e:
        return _error(e, full)
    if full:
        return application.model_dump(mode="json")
    return f"Applied: {_fmt_application(application)}"


def transition_application(
    application_id: str,
    status: str,
    role: str = "recruiter",
    full: bool = False,
) -> str | dict:
    """Move an application to ``status`` acting as ``role``.

    Returns (terse): "id: old -> new" or "ERROR: ..."
    """
    async def _go():
        manager = _session().applications
        before = await manager.load(application_id)
        after = await manager.request_transition(application_id, _parse_status(status), parse_role(role))
        return before, after

    try:
        before, after = _run(_go())
    except DevConnectError as e:
        return _error(e, full)
    if full:
        return after.model_dump(mode="json")
    return f"{after.id}: {before.status.value.lower()} -> {after.status.value.lower()}"


def withdraw_application(application_id: str, full: bool = False) -> str | dict:
    """Withdraw one of your own applications (PENDING or REVIEWED only)."""
    try:
        application = _run(_session().applications.withdraw(application_id))
    except DevConnectError as e:
        return _error(e, full)
    if full:
        return application.model_dump(mode="json")
    return f"{application.id}: {application.status.value.lower()}"


def allowed_actions(application_id: str, role: str = "recruiter", full: bool = False) -> str | dict:
    """Statuses ``role`` may move the application to right now."""
    async def _go():
        manager = _session().applications
        await manager.load(application_id)
        return manager.allowed_transitions(application_id, parse_role(role))

    try:
        targets = _run(_go())
    except DevConnectError as e:
        return _error(e, full)
    if full:
        return {"application_id": application_id, "role": role, "allowed": [t.value for t in targets]}
    return ", ".join(t.value.lower() for t in targets) or "none"


# --- Social Graph ---


def _toggle_follow(user_id: str, currently_following: bool, full: bool) -> str | dict:
    try:
        state = _run(_session().social.toggle_follow(user_id, currently_following))
    except DevConnectError as e:
        return _error(e, full)
    if full:
        return {"user_id": user_id, **state.model_dump()}
    return _fmt_relation(f"following {user_id}", state)


def follow(user_id: str, full: bool = False) -> str | dict:
    return _toggle_follow(user_id, False, full)


def unfollow(user_id: str, full: bool = False) -> str | dict:
    return _toggle_follow(user_id, True, full)


def _toggle_pin(developer_id: str, repo_id: str, currently_pinned: bool, full: bool) -> str | dict:
    try:
        state = _run(_session().social.toggle_pin(developer_id, repo_id, currently_pinned))
    except DevConnectError as e:
        return _error(e, full)
    if full:
        return {"developer_id": developer_id, "repo_id": repo_id, **state.model_dump()}
    return _fmt_relation(f"pinned {repo_id}", state)


def pin_repo(developer_id: str, repo_id: str, full: bool = False) -> str | dict:
    return _toggle_pin(developer_id, repo_id, False, full)


def unpin_repo(developer_id: str, repo_id: str, full: bool = False) -> str | dict:
    return _toggle_pin(developer_id, repo_id, True, full)


def _fmt_users(result: UserPage, full: bool) -> str | dict:
    if full:
        return result.model_dump(mode="json")
    if not result.users:
        return "No users"
    return "\n".join(_fmt_user(u) for u in result.users)


def get_followers(username: str, page: int = 1, full: bool = False) -> str | dict:
    try:
        result = _run(_session().gateway.list_followers(username, page=page))
    except DevConnectError as e:
        return _error(e, full)
    return _fmt_users(result, full)


def get_following(username: str, page: int = 1, full: bool = False) -> str | dict:
    try:
        result = _run(_session().gateway.list_following(username, page=page))
    except DevConnectError as e:
        return _error(e, full)
    return _fmt_users(result, full)


# --- Jobs ---


def get_jobs(query: Optional[str] = None, page: int = 1, full: bool = False, **filters) -> str | dict:
    """List one page of the job board.

    Returns (terse): one line per job, "id|title|company|location|active|applications"
    """
    if query:
        filters["q"] = query
    try:
        result = _run(_session().gateway.list_jobs(filters, page=page))
    except DevConnectError as e:
        return _error(e, full)
    if full:
        return result.model_dump(mode="json")
    if not result.jobs:
        return "No jobs"
    return "\n".join(
        "|".join([
            j.id,
            _sanitize(j.title),
            _sanitize(j.company) or "-",
            _sanitize(j.location) or "-",
            "active" if j.is_active else "closed",
            str(j.application_count) if j.application_count is not None else "-",
        ])
        for j in result.jobs
    )
