"""
Form validation helpers shared by the auth and dashboard endpoints.

Every validator is pure and returns a ValidationResult; validate_all picks the
first failure in list order so callers control which error surfaces.
"""
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from app.core.config import settings
from app.utils.text import is_empty

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(is_valid=True)

    @classmethod
    def fail(cls, error: str) -> "ValidationResult":
        return cls(is_valid=False, error=error)


def validate_required(value: Optional[str], field_name: str = "Field") -> ValidationResult:
    if is_empty(value):
        return ValidationResult.fail(f"{field_name} is required")
    return ValidationResult.ok()


def validate_email(email: Optional[str]) -> ValidationResult:
    if is_empty(email):
        return ValidationResult.fail("Email is required")
    if not EMAIL_PATTERN.match(email):
        return ValidationResult.fail("Invalid email format")
    return ValidationResult.ok()


def validate_password(password: Optional[str], min_length: Optional[int] = None) -> ValidationResult:
    if min_length is None:
        min_length = settings.PASSWORD_MIN_LENGTH
    if not password:
        return ValidationResult.fail("Password is required")
    if len(password) < min_length:
        return ValidationResult.fail(f"Password must be at least {min_length} characters")
    return ValidationResult.ok()


def validate_password_match(password: Optional[str], confirm_password: Optional[str]) -> ValidationResult:
    if password != confirm_password:
        return ValidationResult.fail("Passwords do not match")
    return ValidationResult.ok()


def validate_post_title(
    title: Optional[str],
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
) -> ValidationResult:
    """Title must be non-blank and within [min_length, max_length] after trimming."""
    if min_length is None:
        min_length = settings.TITLE_MIN_LENGTH
    if max_length is None:
        max_length = settings.TITLE_MAX_LENGTH

    trimmed = (title or "").strip()
    if not trimmed:
        return ValidationResult.fail("Title is required")
    if len(trimmed) < min_length:
        return ValidationResult.fail(f"Title must be at least {min_length} characters")
    if len(trimmed) > max_length:
        return ValidationResult.fail(f"Title must be at most {max_length} characters")
    return ValidationResult.ok()


def validate_post_content(content: Optional[str], min_length: Optional[int] = None) -> ValidationResult:
    if min_length is None:
        min_length = settings.CONTENT_MIN_LENGTH

    trimmed = (content or "").strip()
    if not trimmed:
        return ValidationResult.fail("Content is required")
    if len(trimmed) < min_length:
        return ValidationResult.fail(f"Content must be at least {min_length} characters")
    return ValidationResult.ok()


def validate_all(results: Iterable[ValidationResult]) -> Optional[str]:
    """Return the first error in order, or None when everything passed."""
    for result in results:
        if not result.is_valid:
            return result.error or "Validation failed"
    return None
