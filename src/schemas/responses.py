from pydantic import BaseModel, Field

from .posts import PostOut


class PostsEnvelope(BaseModel):
    """One page of posts plus pagination metadata."""

    posts: list[PostOut] = Field(default_factory=list, description="Posts on this page")
    count: int = Field(..., ge=0, description="Number of posts on this page")
    limit: int = Field(..., description="Effective page size")
    page: int = Field(..., description="Requested page number")
    total_page: int = Field(..., description="Total number of pages")

    @classmethod
    def of(cls, posts: list[PostOut], *, limit: int, page: int, total_page: int) -> "PostsEnvelope":
        """Convenience constructor deriving ``count`` from the page."""
        return cls(posts=posts, count=len(posts), limit=limit, page=page, total_page=total_page)


class MessageResponse(BaseModel):
    """Simple message response schema."""

    message: str = Field(..., description="Response message")


class ErrorResponse(BaseModel):
    """Error response schema."""

    error: str = Field(..., description="Error message")
