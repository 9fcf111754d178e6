from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from .user import PyObjectId

class CommentCreate(BaseModel):
    blog: PyObjectId = Field(..., alias="_id", description="Internal id of the blog")
    comment: Optional[str] = None
    replying_to: Optional[PyObjectId] = Field(None, description="Parent comment when replying")
    notification_id: Optional[PyObjectId] = Field(
        None, description="Notification the reply was written from"
    )

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        json_schema_extra={
            "example": {
                "_id": "64a7b8c9d1e2f3a4b5c6d7e8",
                "comment": "Great read!"
            }
        }
    )
