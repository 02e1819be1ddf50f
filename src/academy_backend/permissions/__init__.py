"""
Permission system of the academy backend.

- principal: capability resolution and the Principal passed to every resolver
- auth: FastAPI dependencies building a Principal from the forwarded identity
- migration: folding the legacy admin flag into permission levels
"""

from .principal import (
    ANONYMOUS,
    Capability,
    LEVEL_CAPABILITIES,
    PermissionLevel,
    Principal,
    effective_level,
    resolve_permissions,
)

__all__ = [
    "ANONYMOUS",
    "Capability",
    "LEVEL_CAPABILITIES",
    "PermissionLevel",
    "Principal",
    "effective_level",
    "resolve_permissions",
]
