"""
Text sanitization and slug generation.

Short free text coming from clients (names, titles, excerpts, bios) passes
through sanitize_text before it is stored; message bodies go through
sanitize_html, which keeps a small set of formatting tags. Slugs are
derived from titles with generate_slug; uniqueness is the message
service's job.
"""

import html
import re

import bleach

# Formatting tags allowed in message bodies
ALLOWED_TAGS = [
    "p",
    "br",
    "strong",
    "b",
    "em",
    "i",
    "u",
    "ul",
    "ol",
    "li",
    "blockquote",
    "code",
    "pre",
]

# No attributes at all, so no event handlers or javascript: links
ALLOWED_ATTRIBUTES: dict[str, list[str]] = {}

_ANGLE_BRACKETS = re.compile(r"[<>]")
_JAVASCRIPT_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)

_SLUG_INVALID = re.compile(r"[^a-z0-9\s-]")
_SLUG_WHITESPACE = re.compile(r"\s+")
_SLUG_HYPHENS = re.compile(r"-+")

DEFAULT_SLUG = "message"


def sanitize_html(content: str | None) -> str | None:
    """
    Sanitize a message body.

    Tags outside ALLOWED_TAGS are stripped and every attribute is dropped.

    Examples:
        >>> sanitize_html("<p>Hello <b>world</b></p>")
        '<p>Hello <b>world</b></p>'
        >>> sanitize_html("<img src=x onerror=alert(1)>")
        ''
    """
    if content is None:
        return None

    return bleach.clean(
        content,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        strip=True,
    )


def sanitize_text(value: str | None) -> str | None:
    """
    Reduce a short free-text value to plain text.

    All markup is stripped, entities are decoded back to characters, and
    leftover angle brackets, ``javascript:`` schemes and inline event
    handlers such as ``onclick=`` are removed. Surrounding whitespace is
    trimmed.

    Example:
        >>> sanitize_text("  <b>Tom</b> & Jerry onclick=go() ")
        'Tom & Jerry go()'
    """
    if value is None:
        return None
    cleaned = html.unescape(bleach.clean(value, tags=[], strip=True))
    cleaned = _ANGLE_BRACKETS.sub("", cleaned)
    cleaned = _JAVASCRIPT_SCHEME.sub("", cleaned)
    cleaned = _EVENT_HANDLER.sub("", cleaned)
    return cleaned.strip()


def generate_slug(title: str) -> str:
    """
    Derive a URL slug from a title.

    Lowercases, drops everything outside ``[a-z0-9 -]``, turns whitespace
    runs into single hyphens and collapses repeated hyphens. Leading and
    trailing hyphens are trimmed.

    Example:
        >>> generate_slug("Hello, World!  It's -- here")
        'hello-world-its-here'
    """
    slug = _SLUG_INVALID.sub("", title.lower())
    slug = _SLUG_WHITESPACE.sub("-", slug.strip())
    slug = _SLUG_HYPHENS.sub("-", slug).strip("-")
    return slug or DEFAULT_SLUG


def suffixed_slug(base: str, attempt: int) -> str:
    """Candidate slug for a given attempt: ``base``, then ``base-1``, ``base-2``..."""
    return base if attempt == 0 else f"{base}-{attempt}"
