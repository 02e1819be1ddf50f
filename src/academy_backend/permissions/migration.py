"""
Migration of the legacy boolean admin flag onto permission levels.

Older rows mark administrators only through ``is_admin``. The resolver unites
both fields (see ``principal.resolve_permissions``); this helper folds the flag
into the tier so that the flag can eventually be dropped.
"""

import logging
from typing import List
from sqlalchemy import or_
from sqlalchemy.orm import Session

from academy_backend.model.auth import User
from academy_backend.permissions.principal import (
    Capability,
    LEVEL_CAPABILITIES,
    PermissionLevel,
    effective_level,
)

logger = logging.getLogger(__name__)


def migrate_legacy_admins(db: Session) -> List[str]:
    """Fold ``is_admin`` into the permission level wherever that keeps capabilities intact.

    - member (or no level) + flag: becomes ``course_admin``
    - tier already granting ManageCourses + flag: tier kept
    - blog admin / forum moderator + flag: left untouched, one tier cannot
      express both capabilities

    Returns the ids of the users whose flag was cleared.
    """
    migrated = []

    users = db.query(User).filter(User.is_admin == True).all()

    for user in users:
        level = effective_level(user.permission_level)

        if level == PermissionLevel.member:
            user.permission_level = PermissionLevel.course_admin.value
        elif Capability.manage_courses in LEVEL_CAPABILITIES[level]:
            user.permission_level = level.value
        else:
            logger.warning(f"User {user.id} keeps legacy is_admin next to tier '{level.value}'")
            continue

        user.is_admin = False
        migrated.append(user.id)

    db.commit()

    logger.info(f"Migrated {len(migrated)} legacy admin account(s)")
    return migrated


def find_unmigrated_users(db: Session) -> List[User]:
    return db.query(User).filter(or_(User.is_admin == True, User.permission_level == None)).all()
