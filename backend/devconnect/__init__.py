"""DevConnect API client package."""

from devconnect.config import API_URL as DEVCONNECT_API_URL
from devconnect.errors import (
    DevConnectError,
    InvalidTransition,
    AlreadyTerminal,
    Unauthorized,
    NetworkFailure,
    NotFound,
    RequestRejected,
    InvalidResponse,
)
from devconnect.models import (
    # Applications
    Application,
    ApplicationStatus,
    ApplicationFilter,
    Role,
    # Jobs & Users
    Job,
    UserSummary,
    # Relations
    RelationState,
    RelationConfirmation,
)
from devconnect.gateway import Gateway
from devconnect.store import EntityStore
from devconnect.lifecycle import (
    ApplicationLifecycleManager,
    TRANSITIONS,
    TERMINAL_STATUSES,
    check_transition,
    allowed_targets,
)
from devconnect.optimistic import OptimisticMutationController
from devconnect.social import SocialGraph
from devconnect.pagination import PaginatedCursor
from devconnect.session import Session

__all__ = [
    # Errors
    "DevConnectError",
    "InvalidTransition",
    "AlreadyTerminal",
    "Unauthorized",
    "NetworkFailure",
    "NotFound",
    "RequestRejected",
    "InvalidResponse",
    # Models
    "Application",
    "ApplicationStatus",
    "ApplicationFilter",
    "Role",
    "Job",
    "UserSummary",
    "RelationState",
    "RelationConfirmation",
    # Core
    "Gateway",
    "EntityStore",
    "ApplicationLifecycleManager",
    "TRANSITIONS",
    "TERMINAL_STATUSES",
    "check_transition",
    "allowed_targets",
    "OptimisticMutationController",
    "SocialGraph",
    "PaginatedCursor",
    "Session",
    # Config
    "DEVCONNECT_API_URL",
]
