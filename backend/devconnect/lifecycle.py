"""Application Lifecycle Manager.

Enforces the status transition graph and keeps tracked application records
consistent with server-confirmed state.

Status changes are confirmed-write-only: nothing is written locally until the
server answers, and then the server's record replaces ours whole. Transitions
for the same application id are serialized; legality is evaluated only once
the previous transition for that id has resolved.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import Optional

from devconnect.errors import (
    GATEWAY_ERRORS,
    AlreadyTerminal,
    InvalidTransition,
    NotFound,
    Unauthorized,
    classify,
)
from devconnect.gateway import Gateway
from devconnect.locks import KeyedLocks
from devconnect.models import Application, ApplicationStatus, Job, Role
from devconnect.store import EntityStore

logger = logging.getLogger(__name__)

S = ApplicationStatus

TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    S.PENDING: frozenset({S.REVIEWED, S.SHORTLISTED, S.REJECTED, S.WITHDRAWN}),
    S.REVIEWED: frozenset({S.SHORTLISTED, S.REJECTED, S.WITHDRAWN}),
    S.SHORTLISTED: frozenset({S.ACCEPTED, S.REJECTED}),
    S.ACCEPTED: frozenset(),
    S.REJECTED: frozenset(),
    S.WITHDRAWN: frozenset(),
}

TERMINAL_STATUSES = frozenset({S.ACCEPTED, S.REJECTED, S.WITHDRAWN})
WITHDRAWABLE_STATUSES = frozenset({S.PENDING, S.REVIEWED})

# Which targets each role may request
ROLE_TARGETS: dict[Role, frozenset[ApplicationStatus]] = {
    Role.RECRUITER: frozenset({S.REVIEWED, S.SHORTLISTED, S.ACCEPTED, S.REJECTED}),
    Role.APPLICANT: frozenset({S.WITHDRAWN}),
}
_ASSIGNABLE = frozenset().union(*ROLE_TARGETS.values())

APPLICATION = "application"
JOB = "job"


def parse_role(role: Role | str) -> Role:
    """Coerce a role name (any case) to Role; unknown roles are Unauthorized."""
    if isinstance(role, Role):
        return role
    try:
        return Role(str(role).strip().lower())
    except ValueError:
        raise Unauthorized(f"Unknown role: {role}") from None


def check_transition(
    current: ApplicationStatus,
    target: ApplicationStatus,
    actor_role: Role,
    application_id: Optional[str] = None,
) -> None:
    """Raise if ``actor_role`` may not move an application from ``current`` to ``target``.

    Order matters: terminal lockout first, then targets nobody may request,
    then the role check, then the graph.
    """
    if current in TERMINAL_STATUSES:
        raise AlreadyTerminal(
            f"Application is {current.value}; no further transitions",
            application_id=application_id, current=current, target=target,
        )
    if target not in _ASSIGNABLE:
        raise InvalidTransition(
            f"{target.value} cannot be requested",
            application_id=application_id, current=current, target=target,
        )
    if target not in ROLE_TARGETS[actor_role]:
        raise Unauthorized(f"{actor_role.value} may not move an application to {target.value}")
    if target not in TRANSITIONS[current]:
        raise InvalidTransition(
            f"{current.value} -> {target.value} is not allowed",
            application_id=application_id, current=current, target=target,
        )


def allowed_targets(current: ApplicationStatus, actor_role: Role) -> list[ApplicationStatus]:
    """Targets ``actor_role`` may request from ``current``, in enum order."""
    if current in TERMINAL_STATUSES:
        return []
    allowed = TRANSITIONS[current] & ROLE_TARGETS[actor_role]
    return [s for s in ApplicationStatus if s in allowed]


class ApplicationLifecycleManager:
    def __init__(self, gateway: Gateway, store: Optional[EntityStore] = None):
        self.gateway = gateway
        self.store = store if store is not None else EntityStore()
        self._locks = KeyedLocks()
        self._pending: set[asyncio.Task] = set()

    # --- Local records ---

    def track(self, application: Application) -> Application:
        """Store a server-provided record, replacing any previous one."""
        self.store.set(APPLICATION, application.id, application)
        return application

    def track_many(self, applications: list[Application]) -> list[Application]:
        for application in applications:
            self.track(application)
        return applications

    def get(self, application_id: str) -> Application:
        application = self.store.get(APPLICATION, application_id)
        if application is None:
            raise NotFound(f"Application {application_id} is not loaded")
        return application

    def status_counts(self, job_id: Optional[str] = None) -> dict[ApplicationStatus, int]:
        """Per-status counts over tracked applications (optionally one job's)."""
        counts = Counter(
            a.status for a in self.store.values(APPLICATION)
            if job_id is None or a.job.id == job_id
        )
        return {status: counts.get(status, 0) for status in ApplicationStatus}

    def allowed_transitions(self, application_id: str, actor_role: Role | str) -> list[ApplicationStatus]:
        return allowed_targets(self.get(application_id).status, parse_role(actor_role))

    # --- Remote operations ---

    async def load(self, application_id: str) -> Application:
        """Fetch one application from the server and track it."""
        try:
            application = await self.gateway.get_application(application_id)
        except GATEWAY_ERRORS as e:
            raise classify(e) from e
        return self.track(application)

    async def apply(
        self,
        job_id: str,
        cover_letter: Optional[str] = None,
        resume_url: Optional[str] = None,
    ) -> Application:
        """Submit an application and track the created record."""
        try:
            application = await self.gateway.apply_to_job(job_id, cover_letter, resume_url)
        except GATEWAY_ERRORS as e:
            raise classify(e) from e
        self.track(application)
        job: Optional[Job] = self.store.get(JOB, job_id)
        if job is not None and job.application_count is not None:
            self.store.set(JOB, job_id, job.model_copy(
                update={"application_count": job.application_count + 1}
            ))
        logger.info(f"Applied to job {job_id} as application {application.id}")
        return application

    async def request_transition(
        self,
        application_id: str,
        target_status: ApplicationStatus | str,
        actor_role: Role | str,
    ) -> Application:
        """Move an application to ``target_status`` on behalf of ``actor_role``.

        Raises:
            AlreadyTerminal: current status is terminal
            Unauthorized: role may not request this target
            InvalidTransition: edge not in the graph, or rejected by the server
            NotFound, NetworkFailure: remote failures
        """
        try:
            target = ApplicationStatus(target_status)
        except ValueError:
            raise InvalidTransition(f"Unknown status: {target_status}",
                                    application_id=application_id) from None
        role = parse_role(actor_role)
        return await self._shielded(self._transition(application_id, target, role))

    async def withdraw(self, application_id: str) -> Application:
        """Applicant withdraws; only legal from PENDING or REVIEWED."""
        return await self._shielded(self._transition(
            application_id, S.WITHDRAWN, Role.APPLICANT, withdrawing=True
        ))

    async def drain(self) -> None:
        """Wait for transitions whose callers went away to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # --- Internals ---

    async def _shielded(self, coro) -> Application:
        # The remote call and the store write finish even if the caller is cancelled
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return await asyncio.shield(task)

    async def _transition(
        self,
        application_id: str,
        target: ApplicationStatus,
        role: Role,
        withdrawing: bool = False,
    ) -> Application:
        async with self._locks.hold(application_id):
            current = self.store.get(APPLICATION, application_id)
            if current is None:
                current = await self.load(application_id)

            if withdrawing and current.status not in WITHDRAWABLE_STATUSES:
                raise AlreadyTerminal(
                    f"Application is {current.status.value}; cannot withdraw",
                    application_id=application_id, current=current.status, target=target,
                )
            check_transition(current.status, target, role, application_id)

            def rejected(message: str, status_code: Optional[int]) -> InvalidTransition:
                return InvalidTransition(
                    message, application_id=application_id,
                    current=current.status, target=target, status_code=status_code,
                )

            try:
                if target is S.WITHDRAWN:
                    confirmed = await self.gateway.withdraw_application(application_id)
                else:
                    confirmed = await self.gateway.update_application_status(application_id, target)
            except GATEWAY_ERRORS as e:
                raise classify(e, rejected=rejected) from e

            if confirmed.status is not target:
                logger.info(
                    f"Server settled application {application_id} on "
                    f"{confirmed.status.value} (requested {target.value})"
                )
            self.track(confirmed)
            logger.info(
                f"Application {application_id}: {current.status.value} -> {confirmed.status.value}"
            )
            return confirmed
