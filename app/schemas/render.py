from typing import Literal, Optional

from pydantic import BaseModel, Field

RenderMode = Literal["full", "preview"]


class RenderedMarkdown(BaseModel):
    """Structured output of the Markdown renderer."""
    html: str
    mode: RenderMode
    truncated: bool = False
    fade_overlay: bool = False


class MarkdownPreviewRequest(BaseModel):
    content: str
    mode: RenderMode = "full"
    max_length: Optional[int] = Field(None, ge=1, description="Preview length bound in characters of raw Markdown")
