"""Map raw server payloads onto the canonical models.

The API has shipped several shapes for the same concept over time (``_id``
vs ``id``, ``jobPost`` vs ``job``, lists bare or wrapped, ...). All of that is
absorbed here so nothing downstream branches on payload shape.
"""

from typing import Any, Optional

from devconnect.models import (
    Application,
    ApplicationPage,
    Job,
    JobPage,
    PageInfo,
    RelationConfirmation,
    UserPage,
    UserSummary,
)


def _first(d: dict, *keys: str, default: Any = None) -> Any:
    """Return the first present, non-None value among ``keys``."""
    for key in keys:
        value = d.get(key)
        if value is not None:
            return value
    return default


def _entity_id(value: Any) -> Optional[str]:
    """Id of an embedded entity, which may be a bare id or a dict."""
    if value is None:
        return None
    if isinstance(value, dict):
        raw = _first(value, "_id", "id")
        return str(raw) if raw is not None else None
    return str(value)


_ENVELOPE_KEYS = {"data", "success", "message", "status", "pagination"}


def unwrap(payload: Any) -> Any:
    """Strip the ``{success, message, data}`` envelope if present."""
    if isinstance(payload, dict) and "data" in payload and set(payload) <= _ENVELOPE_KEYS:
        return payload["data"]
    return payload


def _list_from(data: Any, *keys: str) -> list:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        items = _first(data, *keys, "items")
        if isinstance(items, list):
            return items
    return []


def _page_info(payload: Any, data: Any, count: int, page: int, limit: int) -> PageInfo:
    meta = None
    for source in (data, payload):
        if isinstance(source, dict) and isinstance(source.get("pagination"), dict):
            meta = source["pagination"]
            break
    meta = meta or {}
    return PageInfo(
        total=int(_first(meta, "total", "totalCount", default=count)),
        page=int(_first(meta, "page", "currentPage", default=page)),
        limit=int(_first(meta, "limit", "pageSize", default=limit)),
    )


# --- Applications ---


def _job_ref(raw: dict) -> dict:
    job = _first(raw, "jobPost", "job", "jobId")
    if isinstance(job, dict):
        return {
            "id": _entity_id(job),
            "title": job.get("title") or "",
            "company": _first(job, "companyName", "company", default=""),
            "is_active": bool(_first(job, "isActive", "active", "is_active", default=True)),
        }
    return {"id": _entity_id(job)}


def _applicant_ref(raw: dict) -> Optional[dict]:
    applicant = _first(raw, "applicant", "developer", "user")
    if applicant is None:
        return None
    if not isinstance(applicant, dict):
        return {"id": str(applicant)}
    profile = applicant.get("profile") or applicant.get("developerProfile") or {}
    return {
        "id": _entity_id(applicant),
        "username": applicant.get("username"),
        "name": _first(applicant, "name", "fullName", default=profile.get("fullName")),
        "avatar_url": _first(applicant, "avatarUrl", "avatar", default=profile.get("avatarUrl")),
    }


def application(payload: Any) -> Application:
    """Normalize one application payload."""
    raw = unwrap(payload)
    if isinstance(raw, dict) and isinstance(raw.get("application"), dict):
        raw = raw["application"]
    if not isinstance(raw, dict):
        raw = {}
    applied_at = _first(raw, "appliedAt", "applied_at", "createdAt", "created_at")
    return Application.model_validate({
        "id": _entity_id(raw),
        "status": raw.get("status"),
        "applied_at": applied_at,
        "updated_at": _first(raw, "updatedAt", "updated_at", default=applied_at),
        "job": _job_ref(raw),
        "applicant": _applicant_ref(raw),
        "cover_letter": raw.get("coverLetter"),
        "resume_url": raw.get("resumeUrl"),
    })


def application_page(payload: Any, page: int = 1, limit: int = 10) -> ApplicationPage:
    """Normalize a paged application list."""
    data = unwrap(payload)
    items = _list_from(data, "applications")
    return ApplicationPage(
        applications=[application(item) for item in items],
        pagination=_page_info(payload, data, len(items), page, limit),
    )


# --- Jobs ---


def job(payload: Any) -> Job:
    raw = unwrap(payload)
    if isinstance(raw, dict) and isinstance(raw.get("job"), dict):
        raw = raw["job"]
    if not isinstance(raw, dict):
        raw = {}
    location = raw.get("location")
    if isinstance(location, dict):
        parts = [location.get("city"), location.get("country")]
        location = ", ".join(p for p in parts if p) or None
    return Job.model_validate({
        "id": _entity_id(raw),
        "title": raw.get("title"),
        "company": _first(raw, "companyName", "company", default=""),
        "location": location,
        "work_type": _first(raw, "workType", "work_type"),
        "employment_type": _first(raw, "employmentType", "employment_type"),
        "is_active": bool(_first(raw, "isActive", "active", "is_active", default=True)),
        "application_count": _first(raw, "applicationCount", "applicationsCount",
                                    "application_count"),
        "created_at": _first(raw, "createdAt", "created_at"),
    })


def job_page(payload: Any, page: int = 1, limit: int = 10) -> JobPage:
    data = unwrap(payload)
    items = _list_from(data, "jobs")
    return JobPage(
        jobs=[job(item) for item in items],
        pagination=_page_info(payload, data, len(items), page, limit),
    )


# --- Users ---


def user_summary(raw: dict) -> UserSummary:
    # Follow lists sometimes carry the Follow edge instead of the user
    for key in ("follower", "following", "user"):
        if isinstance(raw.get(key), dict):
            raw = raw[key]
            break
    return UserSummary.model_validate({
        "id": _entity_id(raw),
        "username": raw.get("username"),
        "name": _first(raw, "name", "fullName"),
        "avatar_url": _first(raw, "avatarUrl", "avatar"),
        "role": raw.get("role"),
    })


def user_page(payload: Any, page: int = 1, limit: int = 10) -> UserPage:
    data = unwrap(payload)
    items = _list_from(data, "users", "followers", "following")
    return UserPage(
        users=[user_summary(item) for item in items if isinstance(item, dict)],
        pagination=_page_info(payload, data, len(items), page, limit),
    )


# --- Relations ---


def _count(raw: dict, *keys: str) -> Optional[int]:
    value = _first(raw, *keys)
    if isinstance(value, bool) or not isinstance(value, int):
        stats = raw.get("stats")
        if isinstance(stats, dict) and isinstance(stats.get("followers"), int):
            return stats["followers"]
        return None
    return value


def follow_confirmation(payload: Any) -> RelationConfirmation:
    raw = unwrap(payload)
    if not isinstance(raw, dict):
        return RelationConfirmation()
    active = _first(raw, "followed", "isFollowing", "following")
    return RelationConfirmation(
        active=active if isinstance(active, bool) else None,
        count=_count(raw, "followerCount", "followersCount", "followers"),
    )


def pin_confirmation(payload: Any) -> RelationConfirmation:
    raw = unwrap(payload)
    if not isinstance(raw, dict):
        return RelationConfirmation()
    active = _first(raw, "pinned", "isPinned")
    return RelationConfirmation(active=active if isinstance(active, bool) else None)
