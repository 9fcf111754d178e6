from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict

class NotificationFilter(str, Enum):
    ALL = "all"
    LIKE = "like"
    COMMENT = "comment"
    REPLY = "reply"

class NotificationQuery(BaseModel):
    page: int = Field(1, ge=1)
    filter: NotificationFilter = NotificationFilter.ALL
    deleted_doc_count: Optional[int] = Field(None, ge=0, alias="deletedDocCount")

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

class NotificationCountQuery(BaseModel):
    filter: NotificationFilter = NotificationFilter.ALL

    model_config = ConfigDict(use_enum_values=True)
