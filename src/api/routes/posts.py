from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from db.database import get_db
from schemas.posts import DateRangeQuery, PostCreate, PostDetail, PostOut, PostUpdate
from schemas.responses import ErrorResponse, MessageResponse, PostsEnvelope
from services import post_service

router = APIRouter(
    prefix="/posts",
    tags=["Posts"],
)

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


@router.get(
    "",
    response_model=PostsEnvelope,
    summary="List published posts",
    description="Paginated published posts whose title contains the given text.",
    responses=ERROR_RESPONSES,
)
async def list_posts(
    db: Annotated[AsyncSession, Depends(get_db)],
    page: str | None = Query(None, description="Page number, 1 when absent or not a number"),
    limit: str | None = Query(None, description="Page size, all published posts when absent or 0"),
    title: str | None = Query(None, description="Title substring filter"),
) -> PostsEnvelope:
    return await post_service.list_posts(db, page=page, limit=limit, title=title)


@router.get(
    "/date",
    response_model=PostsEnvelope,
    summary="List posts created on a date",
    description="Paginated posts created on `createdAt` (yyyy-mm-dd) whose title contains the given text.",
    responses=ERROR_RESPONSES,
)
async def list_posts_by_date(
    db: Annotated[AsyncSession, Depends(get_db)],
    page: str | None = Query(None),
    limit: str | None = Query(None),
    title: str | None = Query(None),
    created_at: str | None = Query(None, alias="createdAt", description="Creation date, yyyy-mm-dd"),
) -> PostsEnvelope:
    return await post_service.list_posts_by_date(db, page=page, limit=limit, title=title, created_at=created_at)


@router.get(
    "/{post_id}",
    response_model=PostDetail,
    summary="Get post by ID",
    description="Fetch a single post. Reading a published post increments its view count.",
    responses=ERROR_RESPONSES,
)
async def get_post(post_id: str, db: Annotated[AsyncSession, Depends(get_db)]) -> PostDetail:
    return await post_service.get_post(db, post_id)


@router.post(
    "",
    response_model=PostOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create post",
    description="Create an unpublished post from a title and optional content.",
    responses=ERROR_RESPONSES,
)
async def create_post(
    payload: Annotated[PostCreate, Body(...)],
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> PostOut:
    return await post_service.create_post(db, payload, time_zone=settings.database.time_zone)


@router.post(
    "/dateRange",
    response_model=PostsEnvelope,
    summary="List posts created in a date range",
    description="Paginated posts created between `start_date` and `end_date` inclusive.",
    responses=ERROR_RESPONSES,
)
async def list_posts_in_date_range(
    payload: Annotated[DateRangeQuery, Body(...)],
    db: Annotated[AsyncSession, Depends(get_db)],
    page: str | None = Query(None),
    limit: str | None = Query(None),
) -> PostsEnvelope:
    return await post_service.list_posts_in_date_range(db, payload, page=page, limit=limit)


@router.put(
    "/{post_id}",
    response_model=PostOut,
    summary="Update post",
    description="Replace a post's fields; empty title, content or created_at keep the stored values.",
    responses=ERROR_RESPONSES,
)
async def update_post(
    post_id: str,
    payload: Annotated[PostUpdate, Body(...)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PostOut:
    return await post_service.update_post(db, post_id, payload)


@router.delete(
    "/{post_id}",
    response_model=MessageResponse,
    summary="Delete post",
    description="Hard-delete a post by ID.",
    responses=ERROR_RESPONSES,
)
async def delete_post(post_id: str, db: Annotated[AsyncSession, Depends(get_db)]) -> MessageResponse:
    return await post_service.delete_post(db, post_id)
