import logging
from enum import Enum
from typing import Dict, FrozenSet, Optional
from pydantic import BaseModel, ConfigDict, Field

from academy_backend.errors import Forbidden

logger = logging.getLogger(__name__)


class PermissionLevel(str, Enum):
    """The five account tiers. One tagged value per user."""

    member = "member"
    blog_admin = "blog_admin"
    course_admin = "course_admin"
    forum_moderator = "forum_moderator"
    super_admin = "super_admin"


class Capability(str, Enum):
    manage_blog = "ManageBlog"
    manage_courses = "ManageCourses"
    moderate_forum = "ModerateForum"
    manage_accounts = "ManageAccounts"


LEVEL_CAPABILITIES: Dict[PermissionLevel, FrozenSet[Capability]] = {
    PermissionLevel.member: frozenset(),
    PermissionLevel.blog_admin: frozenset({Capability.manage_blog}),
    PermissionLevel.course_admin: frozenset({Capability.manage_courses}),
    PermissionLevel.forum_moderator: frozenset({Capability.moderate_forum}),
    PermissionLevel.super_admin: frozenset(Capability),
}

# The legacy boolean admin flag gated course administration only
LEGACY_ADMIN_CAPABILITIES: FrozenSet[Capability] = frozenset({Capability.manage_courses})


def effective_level(permission_level: Optional[str]) -> PermissionLevel:
    """Rows created before tiers existed carry no level and count as members."""
    if permission_level is None:
        return PermissionLevel.member
    return PermissionLevel(permission_level)


def resolve_permissions(user) -> FrozenSet[Capability]:
    """Map a user record (or ``None`` for anonymous callers) to its capability set.

    Capabilities of the permission tier and of the legacy ``is_admin`` flag are
    united; neither field overrides the other.
    """
    if user is None:
        return frozenset()

    level = effective_level(getattr(user, "permission_level", None))
    capabilities = LEVEL_CAPABILITIES[level]

    if getattr(user, "is_admin", False):
        if not LEGACY_ADMIN_CAPABILITIES <= capabilities:
            logger.warning(
                f"User {getattr(user, 'id', None)} has legacy is_admin set while tier '{level.value}' lacks course management; "
                "granting ManageCourses through the legacy flag"
            )
        capabilities = capabilities | LEGACY_ADMIN_CAPABILITIES

    return frozenset(capabilities)


class Principal(BaseModel):
    """Explicit caller identity passed into every resolver."""

    user_id: Optional[str] = None
    is_premium: bool = False
    permission_level: PermissionLevel = PermissionLevel.member
    capabilities: FrozenSet[Capability] = Field(default_factory=frozenset)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_user(cls, user) -> "Principal":
        return cls(
            user_id=str(user.id),
            is_premium=bool(user.is_premium),
            permission_level=effective_level(user.permission_level),
            capabilities=resolve_permissions(user),
        )

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def require(self, capability: Capability):
        if not self.has(capability):
            raise Forbidden(f"{capability.value} capability required")

    def get_user_id_or_throw(self) -> str:
        if self.user_id is None:
            raise Forbidden("Authentication required")
        return self.user_id


ANONYMOUS = Principal()
