"""Database models."""

# Import all models here to ensure they're recognized by SQLAlchemy
from app.models.post import Post

__all__ = [
    "Post",
]
