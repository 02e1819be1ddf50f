"""
Account administration: user listing, permission tiers, premium membership.
"""

import logging
from typing import List, Tuple
from sqlalchemy.orm import Session

from academy_backend.errors import InvalidRequest, NotFound
from academy_backend.interface.base import paginate
from academy_backend.interface.users import UserCreate, UserInterface, UserPermissionsUpdate, UserQuery
from academy_backend.model.auth import User
from academy_backend.permissions.principal import Capability, Principal

logger = logging.getLogger(__name__)


def get_user_or_throw(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()

    if user is None:
        raise NotFound("User", user_id)

    return user


def list_users(db: Session, principal: Principal, params: UserQuery) -> Tuple[List[User], int]:
    principal.require(Capability.manage_accounts)

    query = UserInterface.search(db, db.query(User), params)
    return paginate(query, params)


def update_permissions(db: Session, principal: Principal, user_id: str, payload: UserPermissionsUpdate) -> User:
    principal.require(Capability.manage_accounts)

    user = get_user_or_throw(db, user_id)
    changes = payload.model_dump(exclude_unset=True)

    if "permission_level" in changes:
        if changes["permission_level"] is None:
            raise InvalidRequest("permission_level cannot be cleared")
        user.permission_level = changes["permission_level"].value
    if changes.get("is_premium") is not None:
        user.is_premium = changes["is_premium"]
    if changes.get("is_admin") is not None:
        user.is_admin = changes["is_admin"]

    db.commit()
    db.refresh(user)

    logger.info(f"{principal.user_id or 'cli'} updated permissions of user {user.id}: {changes}")
    return user


def create_user(db: Session, payload: UserCreate) -> User:
    """Register a user record; normally done by the identity provider on first sign-in."""

    if payload.email is not None and db.query(User).filter(User.email == payload.email).first() is not None:
        raise InvalidRequest(f"User with email {payload.email} already exists")

    user = User(**payload.model_dump(exclude_none=True))
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"User {user.id} created with level '{user.permission_level}'")
    return user
