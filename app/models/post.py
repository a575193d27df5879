from sqlalchemy import Boolean, Column, Index, String, Text, false

from app.db.base_class import Base


class Post(Base):
    __tablename__ = "posts"

    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    author_id = Column(String(36), nullable=False, index=True)  # auth.users.id, owned by the identity provider
    published = Column(Boolean, nullable=False, default=False, server_default=false())

    __table_args__ = (
        Index("ix_posts_published_created_at", "published", "created_at"),
    )
