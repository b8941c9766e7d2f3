"""Pydantic models for DevConnect data structures.

These are the canonical shapes. Raw server payloads are mapped onto them by
``devconnect.normalize`` before anything else sees them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# --- Enums ---


class ApplicationStatus(str, Enum):
    PENDING = "PENDING"
    REVIEWED = "REVIEWED"
    SHORTLISTED = "SHORTLISTED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


class Role(str, Enum):
    RECRUITER = "recruiter"
    APPLICANT = "applicant"


# --- Application Models ---


class JobRef(BaseModel):
    """Job as denormalized onto an application."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    company: str = ""
    is_active: bool = True


class ApplicantRef(BaseModel):
    """Applicant as denormalized onto an application."""
    model_config = ConfigDict(frozen=True)

    id: str
    username: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class Application(BaseModel):
    """One developer's submission to one job posting.

    Frozen: status changes produce a new record which replaces the old one.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    status: ApplicationStatus
    applied_at: datetime
    updated_at: datetime
    job: JobRef
    applicant: Optional[ApplicantRef] = None
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def upper_status(cls, v):
        """Servers have sent lowercase statuses in the past."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("applied_at", "updated_at", mode="after")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Timestamps without an offset are UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def updated_not_before_applied(self):
        if self.updated_at < self.applied_at:
            raise ValueError("updated_at must not precede applied_at")
        return self


class ApplicationFilter(BaseModel):
    """Filter key for application lists. Hashable so cursors can compare keys."""
    model_config = ConfigDict(frozen=True)

    role: Role = Role.APPLICANT
    job_id: Optional[str] = None
    status: Optional[ApplicationStatus] = None
    sort: Optional[str] = None


# --- Job Models ---


class Job(BaseModel):
    id: str
    title: str
    company: str = ""
    location: Optional[str] = None
    work_type: Optional[str] = None  # "REMOTE", "ONSITE", "HYBRID"
    employment_type: Optional[str] = None  # "FULL_TIME", "CONTRACT", ...
    is_active: bool = True
    application_count: Optional[int] = None
    created_at: Optional[datetime] = None


# --- User Models ---


class UserSummary(BaseModel):
    """Entry of a follower/following list."""
    id: str
    username: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Optional[str] = None


# --- Relation Models ---


class RelationState(BaseModel):
    """Local view of one relation edge (follow, pin) and its derived counter.

    ``count`` is None when the relation has no mirrored aggregate.
    """
    model_config = ConfigDict(frozen=True)

    active: bool
    count: Optional[int] = None

    def toggled(self) -> "RelationState":
        """Flip the flag and move the counter with it."""
        if self.count is None:
            return RelationState(active=not self.active)
        delta = -1 if self.active else 1
        return RelationState(active=not self.active, count=max(0, self.count + delta))

    def reconcile(self, before: "RelationState", confirmation: "RelationConfirmation") -> "RelationState":
        """Apply what the server confirmed on top of this optimistic state.

        Server values win. If the server reports a different flag than the one
        assumed, the counter is re-derived from ``before``.
        """
        active = self.active if confirmation.active is None else confirmation.active
        if confirmation.count is not None:
            count = confirmation.count
        elif before.count is None:
            count = None
        elif active == before.active:
            count = before.count
        else:
            count = max(0, before.count + (1 if active else -1))
        return RelationState(active=active, count=count)


class RelationConfirmation(BaseModel):
    """Server answer to a relation toggle. Fields are None when absent."""
    active: Optional[bool] = None
    count: Optional[int] = None


# --- Page Models ---


class PageInfo(BaseModel):
    total: int = 0
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)


class ApplicationPage(BaseModel):
    applications: list[Application] = Field(default_factory=list)
    pagination: PageInfo = Field(default_factory=PageInfo)


class JobPage(BaseModel):
    jobs: list[Job] = Field(default_factory=list)
    pagination: PageInfo = Field(default_factory=PageInfo)


class UserPage(BaseModel):
    users: list[UserSummary] = Field(default_factory=list)
    pagination: PageInfo = Field(default_factory=PageInfo)
