"""
Markdown rendering for post bodies and preview cards.

Styling is a declarative tag -> StyleDescriptor map applied by a single
tree pass after parsing. Full and preview output differ only by the map and
by the preview's raw-text truncation and fade container.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional
from xml.etree import ElementTree as etree

import bleach
import markdown
from markdown.extensions import Extension
from markdown.extensions.tables import TableExtension
from markdown.serializers import to_html_string
from markdown.treeprocessors import Treeprocessor

from app.core.config import settings
from app.schemas.render import RenderedMarkdown, RenderMode
from app.utils.text import truncate_at_word

ALLOWED_TAGS = frozenset([
    "h1", "h2", "h3", "h4", "h5", "h6",
    "p", "br", "hr",
    "strong", "em", "a", "img",
    "ul", "ol", "li",
    "blockquote", "pre", "code",
    "table", "thead", "tbody", "tr", "th", "td",
    "div",
])
ALLOWED_ATTRS = {
    "*": ["class"],
    "a": ["href", "title", "target", "rel"],
    "img": ["src", "alt", "title"],
    "th": ["align"],
    "td": ["align"],
}
ALLOWED_PROTOCOLS = frozenset(["http", "https", "mailto"])


@dataclass(frozen=True)
class StyleDescriptor:
    classes: str = ""
    attrs: Dict[str, str] = field(default_factory=dict)
    # Only set on <a> whose href starts with "http"
    external_attrs: Dict[str, str] = field(default_factory=dict)
    wrapper_class: Optional[str] = None


StyleMap = Dict[str, StyleDescriptor]

FULL_STYLES: StyleMap = {
    "h1": StyleDescriptor("text-heading mb-4 mt-6 text-3xl font-bold"),
    "h2": StyleDescriptor("text-heading mb-3 mt-6 text-2xl font-semibold"),
    "h3": StyleDescriptor("text-heading mb-2 mt-4 text-xl font-semibold"),
    "h4": StyleDescriptor("text-heading mb-2 mt-3 text-lg font-semibold"),
    "h5": StyleDescriptor("text-heading mb-2 mt-3 text-base font-semibold"),
    "h6": StyleDescriptor("text-heading mb-2 mt-3 text-sm font-semibold"),
    "p": StyleDescriptor("text-body mb-4 leading-relaxed"),
    "a": StyleDescriptor(
        "text-accent font-medium hover:underline",
        external_attrs={"target": "_blank", "rel": "noopener noreferrer"},
    ),
    "ul": StyleDescriptor("mb-4 ml-6 list-disc space-y-2 text-gray-700"),
    "ol": StyleDescriptor("mb-4 ml-6 list-decimal space-y-2 text-gray-700"),
    "li": StyleDescriptor("leading-relaxed"),
    "code": StyleDescriptor("rounded bg-gray-200 px-2 py-1 font-mono text-sm text-gray-800"),
    "pre": StyleDescriptor("mb-4 overflow-x-auto rounded-lg bg-gray-800 p-4 text-gray-100"),
    "blockquote": StyleDescriptor("border-accent mb-4 border-l-4 pl-4 italic text-gray-600"),
    "strong": StyleDescriptor("font-bold text-gray-900"),
    "em": StyleDescriptor("italic"),
    "hr": StyleDescriptor("my-6 border-gray-300"),
    "img": StyleDescriptor("my-4 rounded-lg", attrs={"alt": ""}),
    "table": StyleDescriptor("min-w-full divide-y divide-gray-200", wrapper_class="my-4 overflow-x-auto"),
    "thead": StyleDescriptor("bg-gray-50"),
    "tbody": StyleDescriptor("divide-y divide-gray-200 bg-white"),
    "th": StyleDescriptor("px-4 py-2 text-left text-xs font-semibold uppercase tracking-wide text-gray-700"),
    "td": StyleDescriptor("whitespace-nowrap px-4 py-2 text-sm text-gray-700"),
}

PREVIEW_STYLES: StyleMap = {
    "h1": StyleDescriptor("text-heading mb-1 text-sm font-semibold line-clamp-1"),
    "h2": StyleDescriptor("text-heading mb-1 text-sm font-semibold line-clamp-1"),
    "h3": StyleDescriptor("text-heading mb-1 text-xs font-semibold line-clamp-1"),
    "p": StyleDescriptor("mb-1 text-sm leading-relaxed text-gray-600"),
    "ul": StyleDescriptor("mb-1 ml-4 list-disc text-sm text-gray-600"),
    "ol": StyleDescriptor("mb-1 ml-4 list-decimal text-sm text-gray-600"),
    "li": StyleDescriptor("text-sm"),
    "code": StyleDescriptor("rounded bg-gray-100 px-1 py-0.5 font-mono text-xs text-gray-800"),
    "blockquote": StyleDescriptor("border-accent mb-1 border-l-2 pl-2 text-sm text-gray-600 italic"),
    "strong": StyleDescriptor("font-semibold text-gray-800"),
    "em": StyleDescriptor("italic"),
}

FULL_CONTAINER_CLASS = "prose prose-slate max-w-none"
PREVIEW_CONTAINER_CLASS = "relative max-h-[4.5rem] overflow-hidden"
PREVIEW_INNER_CLASS = "prose prose-sm max-w-none"
PREVIEW_FADE_CLASS = "pointer-events-none absolute bottom-0 left-0 right-0 h-6 bg-gradient-to-t from-white to-transparent"


class StyleTreeprocessor(Treeprocessor):
    """Apply a StyleMap to every element of the parsed document."""

    def __init__(self, md, styles: StyleMap):
        super().__init__(md)
        self.styles = styles

    def run(self, root):
        self.style_tree(root)
        self._style_stashed_code()

    def style_tree(self, root):
        # Snapshot first, wrapping tables mutates the tree
        pairs = [(parent, child) for parent in root.iter() for child in parent]
        for parent, element in pairs:
            descriptor = self.styles.get(element.tag)
            if descriptor is None:
                continue
            self._apply(element, descriptor)
            if descriptor.wrapper_class:
                self._wrap(parent, element, descriptor.wrapper_class)

    def _style_stashed_code(self):
        """Fenced code blocks live in the HTML stash as strings, not tree nodes."""
        stash = self.md.htmlStash.rawHtmlBlocks
        for index, block in enumerate(stash):
            if not isinstance(block, str) or not block.startswith("<pre"):
                continue
            try:
                fragment = etree.fromstring(f"<div>{block}</div>")
            except etree.ParseError:
                # Left unstyled, bleach still cleans it
                continue
            self.style_tree(fragment)
            stash[index] = "".join(to_html_string(child) for child in fragment)

    @staticmethod
    def _apply(element, descriptor: StyleDescriptor):
        if descriptor.classes:
            existing = element.get("class")
            element.set("class", f"{existing} {descriptor.classes}" if existing else descriptor.classes)
        for name, value in descriptor.attrs.items():
            if element.get(name) is None:
                element.set(name, value)
        if descriptor.external_attrs and (element.get("href") or "").startswith("http"):
            for name, value in descriptor.external_attrs.items():
                element.set(name, value)

    @staticmethod
    def _wrap(parent, element, wrapper_class: str):
        index = list(parent).index(element)
        wrapper = etree.Element("div", {"class": wrapper_class})
        wrapper.tail, element.tail = element.tail, None
        parent.remove(element)
        wrapper.append(element)
        parent.insert(index, wrapper)


class PostMarkdownExtension(Extension):
    """Escape raw HTML and style the output tree."""

    def __init__(self, styles: StyleMap, **kwargs):
        self.styles = styles
        super().__init__(**kwargs)

    def extendMarkdown(self, md):
        # Raw HTML falls through to text and is escaped on serialization
        md.preprocessors.deregister("html_block")
        md.inlinePatterns.deregister("html")
        # After inline processing (20) and prettify (10)
        md.treeprocessors.register(StyleTreeprocessor(md, self.styles), "post_styles", 7)


class MarkdownRenderer:
    """Renders post Markdown to sanitized HTML in full or preview mode."""

    def __init__(self, full_styles: StyleMap = FULL_STYLES, preview_styles: StyleMap = PREVIEW_STYLES):
        self._renderers = {
            "full": self._build(full_styles),
            "preview": self._build(preview_styles),
        }

    @staticmethod
    def _build(styles: StyleMap) -> markdown.Markdown:
        return markdown.Markdown(
            extensions=["fenced_code", TableExtension(use_align_attribute=True), PostMarkdownExtension(styles)],
            output_format="html",
        )

    def _convert(self, content: str, mode: RenderMode) -> str:
        renderer = self._renderers[mode]
        renderer.reset()
        html = renderer.convert(content or "")
        return bleach.clean(
            html,
            tags=ALLOWED_TAGS,
            attributes=ALLOWED_ATTRS,
            protocols=ALLOWED_PROTOCOLS,
            strip=True,
        )

    def render(self, content: str, mode: RenderMode = "full", max_length: Optional[int] = None) -> RenderedMarkdown:
        """
        Render Markdown content.

        Args:
            content: Raw Markdown
            mode: "full" for detail pages, "preview" for listing cards
            max_length: Preview bound on the raw Markdown (defaults to PREVIEW_MAX_LENGTH)

        Returns:
            RenderedMarkdown: HTML plus whether the source was truncated
        """
        if mode == "preview":
            return self.render_preview(content, max_length)

        body = self._convert(content, "full")
        return RenderedMarkdown(html=f'<div class="{FULL_CONTAINER_CLASS}">{body}</div>', mode="full")

    def render_preview(self, content: str, max_length: Optional[int] = None) -> RenderedMarkdown:
        if max_length is None:
            max_length = settings.PREVIEW_MAX_LENGTH

        source = content or ""
        # Cut the raw text, a half-open construct just renders literally
        clipped = truncate_at_word(source, max_length)
        body = self._convert(clipped, "preview")
        html = (
            f'<div class="{PREVIEW_CONTAINER_CLASS}">'
            f'<div class="{PREVIEW_INNER_CLASS}">{body}</div>'
            f'<div class="{PREVIEW_FADE_CLASS}"></div>'
            f'</div>'
        )
        return RenderedMarkdown(html=html, mode="preview", truncated=clipped != source, fade_overlay=True)


_renderer: Optional[MarkdownRenderer] = None


def get_markdown_renderer() -> MarkdownRenderer:
    """Get the shared renderer, building it on first use."""
    global _renderer
    if _renderer is None:
        _renderer = MarkdownRenderer()
    return _renderer


def render_markdown(content: str, mode: RenderMode = "full", max_length: Optional[int] = None) -> RenderedMarkdown:
    return get_markdown_renderer().render(content, mode, max_length)
