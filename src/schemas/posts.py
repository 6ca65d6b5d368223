from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictBool


class PostCreate(BaseModel):
    """Body of POST /posts. Only title and content are used."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(None, description="Post title (required)")
    content: str | None = Field(None, description="Post content, empty when omitted")
    # Accepted for shape compatibility, never applied
    published: StrictBool | None = Field(None, description="Ignored: new posts are unpublished")
    created_at: datetime | None = Field(None, description="Ignored: creation time is set by the server")


class PostUpdate(BaseModel):
    """Body of PUT /posts/{id}.

    Empty title, content or created_at keep the stored value. ``published`` is
    always written, so omitting it or sending null unpublishes the post.
    """

    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(None, description="New post title")
    content: str | None = Field(None, description="New post content")
    published: StrictBool | None = Field(False, description="Publication status, written as supplied; null is false")
    created_at: datetime | None = Field(None, description="Replacement creation timestamp")


class DateRangeQuery(BaseModel):
    model_config = ConfigDict(extra="ignore")

    start_date: str | None = Field(None, description="Inclusive start date, yyyy-mm-dd")
    end_date: str | None = Field(None, description="Inclusive end date, yyyy-mm-dd")


class PostOut(BaseModel):
    id: str = Field(..., description="Post ID")
    title: str = Field(..., description="Post title")
    content: str = Field(..., description="Post content")
    published: bool = Field(..., description="Publication status")
    created_at: datetime = Field(..., description="Post creation timestamp")

    model_config = ConfigDict(from_attributes=True)


class PostDetail(PostOut):
    view_count: int = Field(..., ge=0, description="Number of reads while published")
