from enum import Enum
from pydantic import BaseModel


class AccessTier(str, Enum):
    no_access = "NoAccess"
    free_preview = "FreePreview"
    premium_access = "PremiumAccess"
    purchased_access = "PurchasedAccess"
    enrolled_access = "EnrolledAccess"
    admin_preview = "AdminPreview"

    @property
    def rank(self) -> int:
        """Precedence used for tie-breaking: Admin > Enrolled > Purchased > Premium > Free > None."""
        return _TIER_RANK[self]

    @property
    def has_access(self) -> bool:
        return self != AccessTier.no_access


_TIER_RANK = {
    AccessTier.no_access: 0,
    AccessTier.free_preview: 1,
    AccessTier.premium_access: 2,
    AccessTier.purchased_access: 3,
    AccessTier.enrolled_access: 4,
    AccessTier.admin_preview: 5,
}


class CourseAccessGet(BaseModel):
    course_id: str
    access_tier: AccessTier
    has_access: bool
