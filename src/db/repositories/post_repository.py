from datetime import date, datetime
import logging

from sqlalchemy import Date, String, bindparam, cast, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db.models.post import Post
from db.repositories.decorators import handle_db_errors

logger = logging.getLogger(__name__)

# created_at truncated to its calendar date; typed so bind values are dates on every dialect
created_on = func.date(Post.created_at, type_=Date)


def title_matches(title: str):
    return Post.title.contains(title)


def created_on_equals(dialect_name: str, value: str):
    """Compare the creation date against a raw client string, cast by the store."""
    raw = bindparam("created_on_value", value, type_=String)
    if dialect_name == "postgresql":
        return created_on == cast(raw, Date)
    # SQLite date() yields yyyy-mm-dd text
    return func.date(Post.created_at) == raw


@handle_db_errors("counting published posts")
async def count_published_posts(db: AsyncSession) -> int:
    stmt = select(func.count()).select_from(Post).where(Post.published.is_(True))
    res = await db.execute(stmt)
    return int(res.scalar_one())


@handle_db_errors("listing published posts")
async def list_published_posts(db: AsyncSession, *, title: str, limit: int, offset: int) -> list[Post]:
    stmt = (
        select(Post)
        .where(Post.published.is_(True), title_matches(title))
        .limit(limit)
        .offset(offset)
    )
    res = await db.execute(stmt)
    return list(res.scalars().all())


@handle_db_errors("counting published posts by title")
async def count_published_posts_by_title(db: AsyncSession, *, title: str) -> int:
    stmt = select(func.count()).select_from(Post).where(Post.published.is_(True), title_matches(title))
    res = await db.execute(stmt)
    return int(res.scalar_one())


@handle_db_errors("listing posts by date")
async def list_posts_by_date(
    db: AsyncSession, *, title: str, created_on_value: str, limit: int, offset: int
) -> list[Post]:
    stmt = (
        select(Post)
        .where(title_matches(title), created_on_equals(db.get_bind().dialect.name, created_on_value))
        .limit(limit)
        .offset(offset)
    )
    res = await db.execute(stmt)
    return list(res.scalars().all())


@handle_db_errors("counting published posts by date")
async def count_published_posts_by_date(db: AsyncSession, *, title: str, created_on_value: str) -> int:
    stmt = (
        select(func.count())
        .select_from(Post)
        .where(
            Post.published.is_(True),
            title_matches(title),
            created_on_equals(db.get_bind().dialect.name, created_on_value),
        )
    )
    res = await db.execute(stmt)
    return int(res.scalar_one())


@handle_db_errors("listing posts in date range")
async def list_posts_in_date_range(
    db: AsyncSession, *, start: date, end: date, limit: int, offset: int
) -> list[Post]:
    stmt = select(Post).where(created_on.between(start, end)).limit(limit).offset(offset)
    res = await db.execute(stmt)
    return list(res.scalars().all())


@handle_db_errors("counting posts in date range")
async def count_posts_in_date_range(db: AsyncSession, *, start: date, end: date) -> int:
    stmt = select(func.count()).select_from(Post).where(created_on.between(start, end))
    res = await db.execute(stmt)
    return int(res.scalar_one())


@handle_db_errors("incrementing view count")
async def increment_view_count(db: AsyncSession, post_id: str) -> int:
    """Bump view_count of a published post; unpublished or missing ids match nothing."""
    stmt = (
        update(Post)
        .where(Post.id == post_id, Post.published.is_(True))
        .values(view_count=Post.view_count + 1)
        .execution_options(synchronize_session=False)
    )
    res = await db.execute(stmt)
    return res.rowcount or 0


@handle_db_errors("fetching post")
async def get_post_by_id(db: AsyncSession, post_id: str) -> Post | None:
    stmt = select(Post).where(Post.id == post_id).execution_options(populate_existing=True)
    res = await db.execute(stmt)
    post = res.scalars().first()
    if not post:
        logger.info("Post with id %s not found", post_id)
    return post


@handle_db_errors("loading post for update")
async def get_existing_post(db: AsyncSession, post_id: str) -> Post:
    """Load a post that must exist; a missing row surfaces as a store error."""
    stmt = select(Post).where(Post.id == post_id).execution_options(populate_existing=True)
    res = await db.execute(stmt)
    return res.scalars().one()


@handle_db_errors("setting session time zone")
async def set_session_time_zone(db: AsyncSession, time_zone: str) -> None:
    # SQLite has no session time zone
    if db.get_bind().dialect.name != "postgresql":
        return
    # Transaction-local so the setting never leaks to other pooled sessions
    await db.execute(select(func.set_config("TimeZone", time_zone, True)))


@handle_db_errors("creating post")
async def create_post(db: AsyncSession, *, title: str, content: str, published: bool, created_at: datetime) -> Post:
    new_post = Post(
        title=title,
        content=content,
        published=published,
        created_at=created_at,
        view_count=0,
    )
    db.add(new_post)
    await db.flush()
    await db.refresh(new_post)
    logger.info("Created new post with id %s", new_post.id)
    return new_post


@handle_db_errors("updating post")
async def update_post(
    db: AsyncSession,
    post_id: str,
    *,
    title: str,
    content: str,
    published: bool,
    created_at: datetime,
    updated_at: datetime,
) -> int:
    stmt = (
        update(Post)
        .where(Post.id == post_id)
        .values(
            title=title,
            content=content,
            published=published,
            created_at=created_at,
            updated_at=updated_at,
        )
        .execution_options(synchronize_session=False)
    )
    res = await db.execute(stmt)
    logger.info("Updated post %s", post_id)
    return res.rowcount or 0


@handle_db_errors("deleting post")
async def delete_post_by_id(db: AsyncSession, post_id: str) -> int:
    stmt = delete(Post).where(Post.id == post_id).execution_options(synchronize_session=False)
    res = await db.execute(stmt)
    if res.rowcount:
        logger.info("Deleted post with id %s", post_id)
    else:
        logger.info("Skip delete: post %s not found", post_id)
    return res.rowcount or 0


@handle_db_errors("committing")
async def commit(db: AsyncSession) -> None:
    await db.commit()
