"""
Error taxonomy and translation for post store operations.

Library failures (SQLAlchemy, asyncpg, PostgREST, httpx) are translated into
StoreError subclasses at the store boundary; FastAPI handlers then map those
to HTTP responses through AsyncErrorHandler.classify_error.
"""

import logging
from typing import Any, Callable, Dict, Optional
from functools import wraps
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
    DisconnectionError,
    TimeoutError as SQLTimeoutError,
    DataError,
)
from fastapi import status
from postgrest.exceptions import APIError
import asyncpg
import httpx

logger = logging.getLogger(__name__)

# PostgREST / Postgres error codes
PG_INSUFFICIENT_PRIVILEGE = "42501"
PGRST_NO_ROWS = "PGRST116"
PGRST_RANGE_NOT_SATISFIABLE = "PGRST103"


class StoreError(Exception):
    """Base exception for post store operations."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


class PostNotFoundError(StoreError):
    """The post does not exist or the caller may not see it."""
    pass


class PostPermissionError(StoreError):
    """The store's row policy rejected the operation."""
    pass


class StoreUnavailableError(StoreError):
    """Network or connection failure talking to the store."""
    pass


class FormValidationError(Exception):
    """Local, field-level input error. Raised before any store call."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


class AsyncErrorHandler:
    """
    Classifies store and library errors.

    translate() turns a raw library exception into a StoreError subclass;
    classify_error() maps any StoreError / FormValidationError to an HTTP
    status code and a client-safe detail message.
    """

    ERROR_MAPPINGS = {
        FormValidationError: {
            'status_code': status.HTTP_422_UNPROCESSABLE_ENTITY,
            'code': 'validation_error',
            'detail': 'Invalid input',
        },
        PostNotFoundError: {
            'status_code': status.HTTP_404_NOT_FOUND,
            'code': 'post_not_found',
            'detail': 'Post not found',
        },
        PostPermissionError: {
            'status_code': status.HTTP_403_FORBIDDEN,
            'code': 'permission_denied',
            'detail': 'You do not have permission to modify this post',
        },
        StoreUnavailableError: {
            'status_code': status.HTTP_503_SERVICE_UNAVAILABLE,
            'code': 'store_unavailable',
            'detail': 'The content store is unavailable, please try again',
        },
        StoreError: {
            'status_code': status.HTTP_500_INTERNAL_SERVER_ERROR,
            'code': 'store_error',
            'detail': 'The content store returned an error',
        },
    }

    @classmethod
    def classify_error(cls, error: Exception) -> Dict[str, Any]:
        """
        Classify an application error.

        Args:
            error: The exception that occurred

        Returns:
            Dictionary with status_code, code and detail
        """
        for exc_type, mapping in cls.ERROR_MAPPINGS.items():
            if isinstance(error, exc_type):
                return mapping.copy()

        return {
            'status_code': status.HTTP_500_INTERNAL_SERVER_ERROR,
            'code': 'internal_error',
            'detail': 'An unexpected error occurred',
        }

    @classmethod
    def translate(cls, error: Exception, operation_name: str = "store operation") -> StoreError:
        """
        Translate a library exception into the store error taxonomy.

        Args:
            error: Exception raised by SQLAlchemy, asyncpg, PostgREST or httpx
            operation_name: Name of the operation for logging

        Returns:
            StoreError subclass carrying the original error
        """
        if isinstance(error, StoreError):
            return error

        if isinstance(error, APIError):
            translated = cls._translate_api_error(error)
        elif isinstance(error, asyncpg.PostgresError):
            translated = cls._translate_postgres_error(error)
        elif isinstance(error, SQLAlchemyError):
            translated = cls._translate_sqlalchemy_error(error)
        elif isinstance(error, httpx.HTTPError):
            translated = StoreUnavailableError("Could not reach the content store", error)
        else:
            translated = StoreError(f"Unexpected error in {operation_name}", error)

        if isinstance(translated, StoreUnavailableError):
            logger.warning(f"Store unavailable during {operation_name}: {error}")
        else:
            logger.error(f"Store error in {operation_name}: {error}")
        return translated

    @classmethod
    def _translate_api_error(cls, error: APIError) -> StoreError:
        if error.code == PG_INSUFFICIENT_PRIVILEGE:
            return PostPermissionError("Row-level policy rejected the operation", error)
        if error.code == PGRST_NO_ROWS:
            return PostNotFoundError("Post not found", error)
        return StoreError(error.message or "PostgREST request failed", error)

    @classmethod
    def _translate_postgres_error(cls, error: asyncpg.PostgresError) -> StoreError:
        if isinstance(error, asyncpg.InsufficientPrivilegeError):
            return PostPermissionError("Row-level policy rejected the operation", error)
        if isinstance(error, (asyncpg.ConnectionDoesNotExistError,
                              asyncpg.ConnectionFailureError)):
            return StoreUnavailableError("Database connection failed", error)
        return StoreError(f"PostgreSQL error: {error.sqlstate}", error)

    @classmethod
    def _translate_sqlalchemy_error(cls, error: SQLAlchemyError) -> StoreError:
        original = getattr(error, 'orig', None)
        if isinstance(original, asyncpg.PostgresError):
            return cls._translate_postgres_error(original)
        if isinstance(error, (OperationalError, DisconnectionError, SQLTimeoutError)):
            return StoreUnavailableError("Database operation failed", error)
        if isinstance(error, (IntegrityError, DataError)):
            return StoreError("Invalid post data", error)
        return StoreError("Database error occurred", error)


def translate_store_errors(operation_name: str = "store operation"):
    """
    Decorator for post store methods.

    Library exceptions are re-raised as StoreError subclasses; StoreError
    raised by the method itself passes through untouched.

    Args:
        operation_name: Name of the operation for logging
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except StoreError:
                raise
            except (SQLAlchemyError, asyncpg.PostgresError, APIError, httpx.HTTPError) as e:
                raise AsyncErrorHandler.translate(e, operation_name) from e
        return wrapper
    return decorator


@asynccontextmanager
async def async_transaction_rollback(db: AsyncSession):
    """
    Context manager for automatic transaction rollback on error.

    Usage:
        async with async_transaction_rollback(db) as session:
            # Perform database operations
            # Automatic rollback on exception
    """
    try:
        yield db
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Transaction rolled back due to error: {e}")
        raise


class SurfacedStoreError(Exception):
    """
    A StoreError tagged with how the client should present it.

    presentation is one of:
        "page"         full-page error with a recovery link (reads)
        "dismissible"  inline message, the unsaved input is echoed back (writes)
        "alert"        blocking alert, the item stays in the list (deletes)
    """

    def __init__(self, error: StoreError, presentation: str, details: Optional[Dict[str, Any]] = None):
        self.error = error
        self.presentation = presentation
        self.details = details or {}
        super().__init__(error.message)
