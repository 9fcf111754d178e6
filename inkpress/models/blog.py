from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any
from .user import PyObjectId

class BlogSave(BaseModel):
    """Create a blog, or edit the one whose slug is given as ``id``"""
    title: str = ""
    banner: Optional[str] = ""
    desc: Optional[str] = ""
    tags: List[str] = Field(default_factory=list)
    content: Dict[str, Any] = Field(default_factory=dict)
    draft: bool = False
    id: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "The Art of Minimalist Design",
                "banner": "https://example.com/banner.jpeg",
                "desc": "Exploring how less becomes more in modern UI/UX design philosophy.",
                "tags": ["design", "ux"],
                "content": {"blocks": [{"type": "paragraph", "data": {"text": "Minimalism..."}}]},
                "draft": False
            }
        }
    )

class BlogLike(BaseModel):
    id: PyObjectId = Field(..., alias="_id")
    is_liked_by_user: bool = Field(False, alias="isLikedByUser")

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

class BlogRef(BaseModel):
    id: PyObjectId = Field(..., alias="_id")

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

class BlogSearch(BaseModel):
    page: int = Field(1, ge=1)
    limit: Optional[int] = Field(None, ge=1, le=50)
    tag: Optional[str] = None
    query: Optional[str] = None
    author: Optional[PyObjectId] = None
    eliminate_blog: Optional[str] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

class UserBlogsQuery(BaseModel):
    page: int = Field(1, ge=1)
    draft: bool = False
    query: Optional[str] = ""
    deleted_doc_count: Optional[int] = Field(None, ge=0, alias="deletedDocCount")

    model_config = ConfigDict(populate_by_name=True)

class BlogSlug(BaseModel):
    blog_id: str = Field(..., min_length=1)
