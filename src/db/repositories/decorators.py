from collections.abc import Callable
import functools
import logging
from typing import Any

from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from core.exceptions import DatabaseError

logger = logging.getLogger(__name__)

AsyncFunc = Callable[..., Any]


def driver_message(exc: SQLAlchemyError) -> str:
    """Return the underlying driver message without SQLAlchemy's statement echo."""
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    if getattr(exc, "orig", None) is not None:
        return str(exc.orig)  # type: ignore[attr-defined]
    return str(exc).split("\n", 1)[0]


def handle_db_errors(action: str = ""):
    """Decorator translating store failures into DatabaseError.

    The raised DatabaseError carries the raw driver message; callers that must
    not expose it replace the message themselves. Nothing is retried.

    Args:
        action: Description used in log messages
    """

    def decorator(func: AsyncFunc) -> AsyncFunc:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            func_name = getattr(func, "__name__", str(func))

            try:
                return await func(*args, **kwargs)
            except SQLAlchemyError as e:
                entity_info = _extract_entity_info(args, kwargs)
                logger.error(f"Database error while {action or func_name} {entity_info}: {e}")
                raise DatabaseError(message=driver_message(e)) from e
            except DatabaseError:
                raise
            except Exception as e:
                entity_info = _extract_entity_info(args, kwargs)
                logger.error(f"Unexpected error while {action or func_name} {entity_info}: {e}")
                raise

        return wrapper

    return decorator


def _extract_entity_info(args: tuple, kwargs: dict) -> str:
    """Extracts entity information from function arguments for logging.

    Tries to find an entity ID or other information in the arguments
    to create more informative log messages.
    """
    # Skip the first argument (usually db: AsyncSession)
    if len(args) > 1 and isinstance(args[1], int | str):
        return str(args[1])

    for key in ["post_id", "title", "created_on_value", "start", "end"]:
        if key in kwargs:
            return f"{key}={kwargs[key]}"

    return ""
