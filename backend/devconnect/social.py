"""Follow/unfollow and pin/unpin on top of the optimistic controller."""

from typing import Optional

from devconnect.gateway import Gateway
from devconnect.models import RelationState
from devconnect.optimistic import OptimisticMutationController


def follow_key(user_id: str) -> str:
    return f"follow:{user_id}"


def pin_key(developer_id: str, repo_id: str) -> str:
    return f"pin:{developer_id}:{repo_id}"


class SocialGraph:
    def __init__(self, gateway: Gateway, controller: Optional[OptimisticMutationController] = None):
        self.gateway = gateway
        self.controller = controller or OptimisticMutationController()

    def follow_state(self, user_id: str) -> Optional[RelationState]:
        return self.controller.state(follow_key(user_id))

    def pin_state(self, developer_id: str, repo_id: str) -> Optional[RelationState]:
        return self.controller.state(pin_key(developer_id, repo_id))

    def seed_follow(self, user_id: str, is_following: bool, follower_count: Optional[int] = None):
        return self.controller.seed(follow_key(user_id), is_following, follower_count)

    async def toggle_follow(
        self, user_id: str, is_following: bool, follower_count: Optional[int] = None
    ) -> RelationState:
        """Follow or unfollow ``user_id``; ``count`` mirrors their follower count."""

        async def apply(follow: bool):
            if follow:
                return await self.gateway.follow(user_id)
            return await self.gateway.unfollow(user_id)

        return await self.controller.toggle_relation(
            follow_key(user_id), is_following, apply, count=follower_count
        )

    async def toggle_pin(self, developer_id: str, repo_id: str, is_pinned: bool) -> RelationState:
        """Pin or unpin a repository on a developer profile."""

        async def apply(pin: bool):
            if pin:
                return await self.gateway.pin(developer_id, repo_id)
            return await self.gateway.unpin(developer_id, repo_id)

        return await self.controller.toggle_relation(
            pin_key(developer_id, repo_id), is_pinned, apply
        )
