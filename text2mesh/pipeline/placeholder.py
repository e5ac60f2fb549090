"""Deterministic SVG placeholder used when no image service answers."""

from xml.sax.saxutils import escape

from .types import SVG_CONTENT_TYPE, GeneratedImage, ImageTier

EXCERPT_LENGTH = 20

PLACEHOLDER_TEMPLATE = """<svg width="1024" height="1024" xmlns="http://www.w3.org/2000/svg">
  <rect width="1024" height="1024" fill="#1a1a1a"/>
  <circle cx="512" cy="400" r="120" fill="#3b82f6"/>
  <text x="512" y="650" text-anchor="middle" fill="#e5e7eb" font-size="24">3D Model</text>
  <text x="512" y="680" text-anchor="middle" fill="#9ca3af" font-size="16">{excerpt}...</text>
</svg>
"""


def prompt_excerpt(prompt: str, length: int = EXCERPT_LENGTH) -> str:
    """First characters of the prompt with whitespace collapsed."""
    return " ".join(prompt.split())[:length]


def render_placeholder_svg(prompt: str) -> str:
    return PLACEHOLDER_TEMPLATE.format(excerpt=escape(prompt_excerpt(prompt)))


def placeholder_image(prompt: str) -> GeneratedImage:
    return GeneratedImage(
        data=render_placeholder_svg(prompt).encode("utf-8"),
        content_type=SVG_CONTENT_TYPE,
        tier=ImageTier.PLACEHOLDER,
    )
