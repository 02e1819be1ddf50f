"""
Identity boundary: turns the identity forwarded by the upstream provider into a Principal.

Sessions, passwords and tokens are owned by the identity provider. The gateway in
front of this service authenticates the caller and forwards the user id in the
configured identity header; requests without it are anonymous.
"""

import logging
from typing import Annotated
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from academy_backend.api.exceptions import UnauthorizedException
from academy_backend.database import get_db
from academy_backend.model.auth import User
from academy_backend.permissions.principal import ANONYMOUS, Principal
from academy_backend.settings import settings

logger = logging.getLogger(__name__)


def load_principal(user_id: str, db: Session) -> Principal:
    user = db.query(User).filter(User.id == user_id).first()

    if user is None:
        logger.info(f"Identity header names unknown user {user_id}")
        raise UnauthorizedException("Unknown user")

    return Principal.from_user(user)


def get_current_principal(request: Request, db: Session = Depends(get_db)) -> Principal:
    """Principal of the caller, or the anonymous sentinel."""

    user_id = request.headers.get(settings.IDENTITY_HEADER)

    if user_id is None or not user_id.strip():
        return ANONYMOUS

    return load_principal(user_id.strip(), db)


def get_authenticated_principal(principal: Annotated[Principal, Depends(get_current_principal)]) -> Principal:

    if principal.is_anonymous:
        raise UnauthorizedException()

    return principal
