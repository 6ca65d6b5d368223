from datetime import date, datetime
import logging
import re

from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import BadRequestError, DatabaseError, NotFoundError
import db.repositories.post_repository as repo
from schemas.posts import DateRangeQuery, PostCreate, PostDetail, PostOut, PostUpdate
from schemas.responses import MessageResponse, PostsEnvelope

logger = logging.getLogger(__name__)

# Messages clients see where the raw store error is hidden
GENERIC_STORE_ERROR = "error message"
DELETE_FAILED = "Failed to delete"

_INT_RE = re.compile(r"[+-]?[0-9]+")
_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_int(value: str | None) -> int:
    """Lenient integer parsing: absent or non-numeric input yields 0."""
    if value is None or not _INT_RE.fullmatch(value):
        return 0
    return int(value)


def parse_page(value: str | None) -> int:
    page = parse_int(value)
    return page if page != 0 else 1


def parse_strict_date(value: str) -> date | None:
    if not _DATE_RE.fullmatch(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def total_pages(total: int, limit: int, *, empty_is_one: bool = False) -> int:
    """Number of pages of ``limit`` rows needed for ``total`` rows.

    A non-positive limit fits nothing, so it yields 0 pages unless the
    empty-result guard applies first.
    """
    if empty_is_one and total == 0:
        return 1
    if limit <= 0:
        return 0
    return -(-total // limit)


def _is_zero_time(value: datetime | None) -> bool:
    return value is None or value.replace(tzinfo=None) == datetime.min


def _now() -> datetime:
    return datetime.now().astimezone()


async def _default_limit(db: AsyncSession, limit: int) -> int:
    """Resolve a zero limit to the number of published posts, keeping 0 on failure."""
    if limit != 0:
        return limit
    try:
        return await repo.count_published_posts(db)
    except DatabaseError as e:
        logger.warning("Could not resolve default limit, keeping 0: %s", e)
        return 0


async def list_posts(
    db: AsyncSession, *, page: str | None = None, limit: str | None = None, title: str | None = None
) -> PostsEnvelope:
    page_num = parse_page(page)
    limit_num = await _default_limit(db, parse_int(limit))
    title = title or ""
    offset = (page_num - 1) * limit_num

    posts = await repo.list_published_posts(db, title=title, limit=limit_num, offset=offset)
    total = await repo.count_published_posts_by_title(db, title=title)

    items = [PostOut.model_validate(p) for p in posts]
    return PostsEnvelope.of(
        items,
        limit=limit_num,
        page=page_num,
        total_page=total_pages(total, limit_num, empty_is_one=True),
    )


async def get_post(db: AsyncSession, post_id: str) -> PostDetail:
    # Two independent steps: a concurrent delete in between yields 404 after the increment
    await repo.increment_view_count(db, post_id)
    await repo.commit(db)

    try:
        post = await repo.get_post_by_id(db, post_id)
    except DatabaseError as e:
        raise DatabaseError(GENERIC_STORE_ERROR) from e
    if post is None:
        raise NotFoundError("this id not found.")
    return PostDetail.model_validate(post)


async def list_posts_by_date(
    db: AsyncSession,
    *,
    page: str | None = None,
    limit: str | None = None,
    title: str | None = None,
    created_at: str | None = None,
) -> PostsEnvelope:
    page_num = parse_page(page)
    limit_num = await _default_limit(db, parse_int(limit))
    title = title or ""
    created_at = created_at or ""
    offset = (page_num - 1) * limit_num

    posts = await repo.list_posts_by_date(
        db, title=title, created_on_value=created_at, limit=limit_num, offset=offset
    )
    if not posts:
        raise NotFoundError("The searched post was not found.")

    # The count is restricted to published posts while the page is not
    total = await repo.count_published_posts_by_date(db, title=title, created_on_value=created_at)

    items = [PostOut.model_validate(p) for p in posts]
    return PostsEnvelope.of(items, limit=limit_num, page=page_num, total_page=total_pages(total, limit_num))


async def list_posts_in_date_range(
    db: AsyncSession, payload: DateRangeQuery, *, page: str | None = None, limit: str | None = None
) -> PostsEnvelope:
    if not payload.start_date:
        raise BadRequestError("start_date is required")
    if not payload.end_date:
        raise BadRequestError("end_date is required")

    start = parse_strict_date(payload.start_date)
    if start is None:
        raise BadRequestError("Invalid start_date format. Use yyyy-mm-dd.")
    end = parse_strict_date(payload.end_date)
    if end is None:
        raise BadRequestError("Invalid end_date format. Use yyyy-mm-dd.")

    page_num = parse_page(page)
    limit_num = parse_int(limit)
    if limit_num == 0:
        limit_num = await repo.count_published_posts(db)
    offset = (page_num - 1) * limit_num

    posts = await repo.list_posts_in_date_range(db, start=start, end=end, limit=limit_num, offset=offset)
    total = await repo.count_posts_in_date_range(db, start=start, end=end)

    items = [PostOut.model_validate(p) for p in posts]
    return PostsEnvelope.of(items, limit=limit_num, page=page_num, total_page=total_pages(total, limit_num))


async def create_post(db: AsyncSession, payload: PostCreate, *, time_zone: str) -> PostOut:
    title = payload.title or ""
    if not title:
        raise BadRequestError("title is required")
    content = payload.content or ""

    await repo.set_session_time_zone(db, time_zone)
    try:
        post = await repo.create_post(db, title=title, content=content, published=False, created_at=_now())
        await repo.commit(db)
    except DatabaseError as e:
        raise DatabaseError(GENERIC_STORE_ERROR) from e
    return PostOut.model_validate(post)


async def update_post(db: AsyncSession, post_id: str, payload: PostUpdate) -> PostOut:
    # Read and write are separate statements: last writer wins
    existing = await repo.get_existing_post(db, post_id)

    title = payload.title or existing.title
    content = payload.content or existing.content
    created_at = existing.created_at if _is_zero_time(payload.created_at) else payload.created_at
    published = bool(payload.published)

    await repo.update_post(
        db,
        post_id,
        title=title,
        content=content,
        published=published,
        created_at=created_at,
        updated_at=_now(),
    )
    await repo.commit(db)
    return PostOut(id=post_id, title=title, content=content, published=published, created_at=created_at)


async def delete_post(db: AsyncSession, post_id: str) -> MessageResponse:
    try:
        affected = await repo.delete_post_by_id(db, post_id)
        await repo.commit(db)
    except DatabaseError as e:
        raise DatabaseError(DELETE_FAILED) from e
    if affected == 0:
        raise NotFoundError("The post you want to delete was not found.")
    return MessageResponse(message="Successfully deleted.")
