from __future__ import annotations

from dataclasses import dataclass

from fastapi import status


@dataclass(eq=False)
class PostsAPIException(Exception):
    message: str
    code: str = "error"
    details: dict | None = None

    def __str__(self) -> str:
        return self.message


class BadRequestError(PostsAPIException):
    code = "bad_request"


class NotFoundError(PostsAPIException):
    code = "not_found"


class DatabaseError(PostsAPIException):
    code = "database_error"


EXC_TO_STATUS: dict[type[PostsAPIException], int] = {
    BadRequestError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    DatabaseError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: PostsAPIException) -> int:
    for typ, st in EXC_TO_STATUS.items():
        if isinstance(exc, typ):
            return st
    return status.HTTP_500_INTERNAL_SERVER_ERROR
