"""One client session: gateway, shared store, lifecycle manager, social graph
and cursor factories wired together."""

from typing import Optional

from devconnect.gateway import Gateway
from devconnect.lifecycle import ApplicationLifecycleManager, JOB
from devconnect.models import Application, ApplicationFilter, Job, UserSummary
from devconnect.optimistic import OptimisticMutationController
from devconnect.pagination import PaginatedCursor
from devconnect.social import SocialGraph
from devconnect.store import EntityStore


class Session:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        page_size: Optional[int] = None,
        gateway: Optional[Gateway] = None,
    ):
        self.gateway = gateway or Gateway(base_url=base_url, token=token)
        self.page_size = page_size
        self.store = EntityStore()
        self.applications = ApplicationLifecycleManager(self.gateway, self.store)
        self.relations = OptimisticMutationController(self.store)
        self.social = SocialGraph(self.gateway, self.relations)

    def application_cursor(self, filters: Optional[ApplicationFilter] = None) -> PaginatedCursor[Application]:
        """Cursor over application lists; loaded records are tracked in the store."""

        async def fetch(key: ApplicationFilter, page: int, limit: int):
            result = await self.gateway.list_applications(key, page=page, limit=limit)
            return self.applications.track_many(result.applications)

        return PaginatedCursor(fetch, filters or ApplicationFilter(), page_size=self.page_size)

    def job_cursor(self, **filters) -> PaginatedCursor[Job]:
        """Cursor over the job board. Filters become query params (q, workType, ...)."""

        async def fetch(key: tuple, page: int, limit: int):
            result = await self.gateway.list_jobs(dict(key), page=page, limit=limit)
            for job in result.jobs:
                self.store.set(JOB, job.id, job)
            return result.jobs

        return PaginatedCursor(fetch, tuple(sorted(filters.items())), page_size=self.page_size)

    def follow_cursor(self, username: str, direction: str = "followers") -> PaginatedCursor[UserSummary]:
        """Cursor over a user's followers or the users they follow."""
        if direction not in ("followers", "following"):
            raise ValueError(f"Invalid direction: {direction}")

        async def fetch(key: tuple, page: int, limit: int):
            name, which = key
            if which == "followers":
                result = await self.gateway.list_followers(name, page=page, limit=limit)
            else:
                result = await self.gateway.list_following(name, page=page, limit=limit)
            return result.users

        return PaginatedCursor(fetch, (username, direction), page_size=self.page_size)

    async def drain(self) -> None:
        """Let abandoned transitions and toggles settle."""
        await self.applications.drain()
        await self.relations.drain()
