from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Post(BaseModel):
    """A post document as stored in the posts collection"""
    id: Optional[str] = None
    author_uid: str
    text: str
    created_at: str
    image_url: Optional[str] = None
    image_key: Optional[str] = None
    likes: List[str] = []


class PostView(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    text: str
    image_url: Optional[str] = Field(None, alias="imageUrl")
    created_at: str = Field(..., alias="createdAt")
    likes: List[str] = []
    like_count: int = Field(0, alias="likeCount")
    user_id: str = Field(..., alias="userId")
    user_name: str = Field(..., alias="userName")


class PostUpdate(BaseModel):
    text: Optional[str] = None
