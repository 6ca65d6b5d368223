from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.expression import FunctionElement

from ..database import Base


class random_post_id(FunctionElement):
    """Store-side generator for post identifiers."""

    type = String()
    inherit_cache = True


@compiles(random_post_id, "postgresql")
def _pg_random_post_id(element, compiler, **kw):
    return "gen_random_uuid()::text"


@compiles(random_post_id, "sqlite")
def _sqlite_random_post_id(element, compiler, **kw):
    return "lower(hex(randomblob(16)))"


class Post(Base):
    """SQLAlchemy model representing a row of the ``posts`` table.

    Attributes:
        id (str): Opaque identifier generated by the store on insert.
        title (str): Post title, max 255 characters.
        content (str): Full post content, empty string when not supplied.
        published (bool): Publication status; new posts start unpublished.
        created_at (datetime): Creation timestamp, overridable on update.
        updated_at (datetime | None): Set only by the update operation.
        view_count (int): Incremented by single-post reads of published posts.
    """

    __tablename__ = "posts"

    id = Column(
        String(36),
        primary_key=True,
        server_default=random_post_id(),
        doc="Opaque post identifier",
    )
    title = Column(
        String(255),
        nullable=False,
        index=True,
        doc="Post title with maximum 255 characters",
    )
    content = Column(
        Text,
        nullable=False,
        default="",
        doc="Full post content",
    )
    published = Column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
        doc="Whether the post is published",
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        doc="Post creation timestamp",
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=True,
        doc="Last modification timestamp",
    )
    view_count = Column(
        Integer,
        nullable=False,
        default=0,
        doc="Number of single-post reads while published",
    )

    def __repr__(self) -> str:
        title_value = getattr(self, "title", None)
        if isinstance(title_value, str) and title_value:
            title_repr = title_value[:30] + "..." if len(title_value) > 30 else title_value
        else:
            title_repr = ""
        return f"<Post(id={self.id}, title={title_repr!r}, published={self.published})>"
