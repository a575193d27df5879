from app.schemas.post import PostCard, PostDetail, PostRead
from app.utils.date import format_date, format_date_short
from app.utils.markdown import render_markdown
from app.utils.text import estimate_reading_time, excerpt, strip_markdown, to_slug


def to_post_card(post: PostRead) -> PostCard:
    """Listing card: preview-rendered body plus a plain-text excerpt."""
    return PostCard(
        id=post.id,
        title=post.title,
        slug=to_slug(post.title),
        author_id=post.author_id,
        published=post.published,
        created_at=post.created_at,
        updated_at=post.updated_at,
        published_on=format_date_short(post.created_at),
        excerpt=excerpt(post.content),
        preview_html=render_markdown(post.content, mode="preview").html,
        reading_time_minutes=estimate_reading_time(strip_markdown(post.content)),
    )


def to_post_detail(post: PostRead) -> PostDetail:
    return PostDetail(
        **post.model_dump(),
        slug=to_slug(post.title),
        published_on=format_date(post.created_at),
        content_html=render_markdown(post.content, mode="full").html,
        excerpt=excerpt(post.content),
        reading_time_minutes=estimate_reading_time(strip_markdown(post.content)),
    )
