from abc import ABC
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field

class ListQuery(BaseModel):
    skip: Optional[int] = Field(0, ge=0)
    limit: Optional[int] = Field(100, ge=1, le=500)

class EntityInterface(ABC):
    create: BaseModel = None
    get: BaseModel = None
    list: BaseModel = None
    update: BaseModel = None
    query: BaseModel = None
    search: Any = None
    endpoint: str = None
    model: Any = None

class BaseEntityList(BaseModel):
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Update timestamp")

class BaseEntityGet(BaseEntityList):
    pass

def paginate(query, params: ListQuery):
    """Apply skip/limit and return (items, total)."""
    total = query.order_by(None).count()

    if params.limit != None:
        query = query.limit(params.limit)
    if params.skip != None:
        query = query.offset(params.skip)

    return query.all(), total
