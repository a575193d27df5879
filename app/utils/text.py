"""
Text utilities for post previews: excerpts, truncation and reading time.
"""
import math
import re
from typing import Optional

from app.core.config import settings

ELLIPSIS = "..."

_LINE_ENDINGS = re.compile(r"\r\n?")
_FENCED_CODE = re.compile(r"^[ \t]*(`{3,}|~{3,})[\s\S]*?^[ \t]*\1", re.MULTILINE)
_HEADING = re.compile(r"^[ \t]{0,3}#{1,6}(?:[ \t]+|$)", re.MULTILINE)
_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_REFERENCE_LINK = re.compile(r"\[([^\]\n]+)\]\[[^\]\n]*\]")
_REFERENCE_DEFINITION = re.compile(r"^[ \t]{0,3}\[[^\]\n]+\]:[ \t]*\S+.*$", re.MULTILINE)
_BOLD = re.compile(r"(\*\*|__)(.+?)\1")
_ITALIC = re.compile(r"(\*|\b_)(.+?)(\*|_\b)")
_INLINE_CODE = re.compile(r"`([^`]*)`")
_BLOCKQUOTE = re.compile(r"^[ \t]*>+[ \t]?", re.MULTILINE)
_LIST_MARKER = re.compile(r"^[ \t]*(?:[-*+]|\d+[.)])[ \t]+", re.MULTILINE)
_HORIZONTAL_RULE = re.compile(r"^[ \t]*(?:[-*_][ \t]*){3,}$", re.MULTILINE)
# Unpaired emphasis or code runs touching a word, e.g. a cut "**bold"
_STRAY_EMPHASIS = re.compile(r"(?<!\w)\*+(?=\w)|(?<=\w)\*+(?!\w)|`+")
_NEWLINES = re.compile(r"[\r\n]+")
_WHITESPACE = re.compile(r"\s+")


def strip_markdown(markdown: str) -> str:
    """Reduce Markdown to plain text, keeping link and image text."""
    if not markdown:
        return ""

    text = _LINE_ENDINGS.sub("\n", markdown)
    text = _FENCED_CODE.sub("", text)
    text = _REFERENCE_DEFINITION.sub("", text)
    text = _HORIZONTAL_RULE.sub("", text)
    text = _HEADING.sub("", text)
    text = _BLOCKQUOTE.sub("", text)
    text = _LIST_MARKER.sub("", text)
    text = _IMAGE.sub(r"\1", text)
    text = _LINK.sub(r"\1", text)
    text = _REFERENCE_LINK.sub(r"\1", text)
    text = _BOLD.sub(r"\2", text)
    text = _ITALIC.sub(r"\2", text)
    text = _INLINE_CODE.sub(r"\1", text)
    text = _STRAY_EMPHASIS.sub("", text)
    text = _NEWLINES.sub(" ", text)
    return remove_extra_whitespace(text)


def excerpt(markdown: str, max_length: Optional[int] = None) -> str:
    """
    Build a plain-text summary of Markdown content.

    Args:
        markdown: Raw Markdown source
        max_length: Upper bound before the ellipsis (defaults to EXCERPT_MAX_LENGTH)

    Returns:
        str: Plain text no longer than max_length + len("...")
    """
    if max_length is None:
        max_length = settings.EXCERPT_MAX_LENGTH
    return truncate_at_word(strip_markdown(markdown), max_length)


def truncate(text: str, max_length: int, suffix: str = ELLIPSIS) -> str:
    """Hard-cut text so that the result including suffix fits max_length."""
    if len(text) <= max_length:
        return text
    return text[:max(max_length - len(suffix), 0)] + suffix


def truncate_at_word(text: str, max_length: int, suffix: str = ELLIPSIS) -> str:
    """Cut text to max_length, back off to the last space, then append suffix."""
    if len(text) <= max_length:
        return text

    trimmed = text[:max_length]
    last_space = trimmed.rfind(" ")
    if last_space > 0:
        trimmed = trimmed[:last_space]
    return trimmed.rstrip() + suffix


def capitalize(text: str) -> str:
    if not text:
        return text
    return text[0].upper() + text[1:]


def to_title_case(text: str) -> str:
    return " ".join(capitalize(word) for word in text.lower().split(" "))


def to_slug(text: str) -> str:
    """URL-friendly slug: lowercase words joined by single hyphens."""
    slug = re.sub(r"[^\w\s-]", "", text.lower().strip())
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def count_words(text: str) -> int:
    return len(text.split())


def estimate_reading_time(text: str, words_per_minute: Optional[int] = None) -> int:
    """Reading time in whole minutes, rounded up."""
    if words_per_minute is None:
        words_per_minute = settings.READING_WORDS_PER_MINUTE
    return math.ceil(count_words(text) / words_per_minute)


def remove_extra_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def is_empty(text: Optional[str]) -> bool:
    return not text or not text.strip()
