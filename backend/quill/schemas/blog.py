"""
Blog and Comment API Schemas

Pydantic models for blog post and comment operations.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AuthorSummary(BaseModel):
    """Joined author fields; absent when the author row is missing."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: Optional[str] = None


class BlogCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, description="Title is required")
    content: str = Field(..., min_length=1, description="Content is required")


class BlogUpdateRequest(BaseModel):
    """
    Partial update of a blog post.

    Omitted fields are left unchanged; at least one field is required.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, min_length=1)

    @model_validator(mode="after")
    def require_one_field(self) -> "BlogUpdateRequest":
        if self.title is None and self.content is None:
            raise ValueError("Provide title or content to update")
        return self


class BlogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    author_id: int
    created_at: datetime
    updated_at: datetime
    author: Optional[AuthorSummary] = None


class CommentCreateRequest(BaseModel):
    content: str = Field(..., min_length=1, description="Comment is required")


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content: str
    author_id: int
    blog_id: int
    created_at: datetime
    updated_at: datetime
    author: Optional[AuthorSummary] = None


class DeleteResponse(BaseModel):
    success: bool = True
