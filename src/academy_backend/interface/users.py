from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.orm import Session
from academy_backend.interface.base import BaseEntityGet, EntityInterface, ListQuery
from academy_backend.model.auth import User
from academy_backend.permissions.principal import Capability, PermissionLevel

class UserCreate(BaseModel):
    id: Optional[str] = Field(None, description="Identity provider subject; generated if omitted")
    email: Optional[EmailStr] = Field(None, description="User's email address")
    given_name: Optional[str] = Field(None, min_length=1, max_length=255)
    family_name: Optional[str] = Field(None, min_length=1, max_length=255)
    is_premium: bool = False
    permission_level: PermissionLevel = PermissionLevel.member

    model_config = ConfigDict(use_enum_values=True)

class UserGet(BaseEntityGet):
    id: str = Field(description="User unique identifier")
    email: Optional[str] = None
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    is_premium: bool = False
    is_admin: bool = Field(False, description="Legacy admin flag")
    permission_level: Optional[PermissionLevel] = Field(None, description="Null on accounts created before permission levels")

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.given_name, self.family_name) if p]
        return ' '.join(parts)

    model_config = ConfigDict(from_attributes=True)

class UserList(BaseModel):
    id: str
    email: Optional[str] = None
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    is_premium: bool = False
    permission_level: Optional[PermissionLevel] = None

    model_config = ConfigDict(from_attributes=True)

class CurrentUserGet(BaseModel):
    user: UserGet
    capabilities: List[Capability] = Field(default_factory=list)

class UserPermissionsUpdate(BaseModel):
    permission_level: Optional[PermissionLevel] = None
    is_premium: Optional[bool] = None
    is_admin: Optional[bool] = Field(None, description="Legacy flag; only clearing it is expected")

class GrantCourseAccess(BaseModel):
    course_id: str = Field(min_length=1)

class UserQuery(ListQuery):
    email: Optional[str] = None
    permission_level: Optional[PermissionLevel] = None
    is_premium: Optional[bool] = None

def user_search(db: Session, query, params: Optional[UserQuery]):
    if params.email != None:
        query = query.filter(User.email == params.email)
    if params.permission_level != None:
        query = query.filter(User.permission_level == params.permission_level.value)
    if params.is_premium != None:
        query = query.filter(User.is_premium == params.is_premium)
    return query.order_by(User.created_at, User.id)

class UserInterface(EntityInterface):
    create = UserCreate
    get = UserGet
    list = UserList
    update = UserPermissionsUpdate
    query = UserQuery
    search = user_search
    endpoint = "admin/users"
    model = User
