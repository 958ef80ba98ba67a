"""Safe rendering of email bodies.

Bodies arrive either as HTML or as plain text. A body containing both ``<``
and ``>`` is treated as HTML and cleaned against an allow-list; anything
else is escaped and wrapped in a whitespace-preserving ``<pre>``.

Cleaning rules:

- ``script``, ``style``, embedded frames/objects, forms and document
  metadata are removed together with their content;
- any other tag outside ``ALLOWED_TAGS`` is unwrapped, keeping its text;
- attributes outside ``ALLOWED_ATTRIBUTES`` are dropped, which removes every
  ``on*`` event handler;
- URI attributes must use one of the ``SAFE_URI_SCHEMES`` or be relative;
- inline styles that can load or execute code are dropped;
- comments, doctypes and processing instructions are removed.

``render_body`` never raises: if parsing fails the body is rendered as
escaped plain text.
"""

import html
import logging
import re

from bs4 import BeautifulSoup, Comment
from bs4.element import Declaration, Doctype, ProcessingInstruction

logger = logging.getLogger(__name__)


ALLOWED_TAGS = frozenset({
    # structure and text
    "a", "abbr", "address", "article", "aside", "b", "bdi", "bdo", "big",
    "blockquote", "br", "center", "cite", "code", "dd", "del", "details",
    "dfn", "div", "dl", "dt", "em", "figcaption", "figure", "font", "footer",
    "h1", "h2", "h3", "h4", "h5", "h6", "header", "hr", "i", "img", "ins",
    "kbd", "li", "main", "mark", "nav", "ol", "p", "pre", "q", "s", "samp",
    "section", "small", "span", "strike", "strong", "sub", "summary", "sup",
    "time", "tt", "u", "ul", "var", "wbr",
    # tables
    "caption", "col", "colgroup", "table", "tbody", "td", "tfoot", "th",
    "thead", "tr",
})

# Removed including everything inside them
DROP_TAGS = frozenset({
    "applet", "base", "basefont", "button", "embed", "form", "frame",
    "frameset", "head", "iframe", "input", "link", "math", "meta", "noembed",
    "noframes", "noscript", "object", "option", "param", "script", "select",
    "style", "svg", "template", "textarea", "title",
})

_GLOBAL_ATTRIBUTES = frozenset({
    "align", "bgcolor", "border", "class", "color", "dir", "height", "id",
    "lang", "style", "title", "valign", "width",
})

ALLOWED_ATTRIBUTES: dict[str, frozenset[str]] = {
    "a": frozenset({"href", "name", "target", "rel"}),
    "img": frozenset({"src", "alt", "hspace", "vspace"}),
    "font": frozenset({"face", "size"}),
    "blockquote": frozenset({"cite"}),
    "q": frozenset({"cite"}),
    "ol": frozenset({"start", "type"}),
    "ul": frozenset({"type"}),
    "table": frozenset({"background", "cellpadding", "cellspacing", "frame", "rules", "summary"}),
    "td": frozenset({"abbr", "background", "colspan", "headers", "nowrap", "rowspan", "scope"}),
    "th": frozenset({"abbr", "background", "colspan", "headers", "nowrap", "rowspan", "scope"}),
    "col": frozenset({"span"}),
    "colgroup": frozenset({"span"}),
    "time": frozenset({"datetime"}),
}

URI_ATTRIBUTES = frozenset({"href", "src", "cite", "background"})

SAFE_URI_SCHEMES = ("http", "https", "mailto", "tel", "cid", "ftp")

# Either an allowed scheme, or something that cannot be a scheme at all
# (relative paths, fragments, queries, protocol-relative URLs).
_SAFE_URI = re.compile(
    r"^(?:(?:%s):|[^a-z]|[a-z+.\-]+(?:[^a-z+.\-:]|$))" % "|".join(SAFE_URI_SCHEMES),
    re.IGNORECASE,
)
# Browsers ignore control characters and whitespace inside schemes
_URI_NOISE = re.compile(r"[\x00-\x20\x7f-\xa0]+")

_UNSAFE_STYLE = re.compile(
    r"expression\s*\(|javascript\s*:|vbscript\s*:|url\s*\(|@import|behavior\s*:|-moz-binding",
    re.IGNORECASE,
)
_CSS_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)

PLAIN_TEXT_TEMPLATE = '<pre style="white-space: pre-wrap">{}</pre>'


def looks_like_html(body: str) -> bool:
    """Whether a body is rendered as markup rather than plain text."""
    return "<" in body and ">" in body


def is_safe_uri(value: str) -> bool:
    return bool(_SAFE_URI.match(_URI_NOISE.sub("", value)))


def is_safe_style(value: str) -> bool:
    value = _CSS_COMMENT.sub("", value).replace("\\", "")
    return not _UNSAFE_STYLE.search(value)


def render_plain_text(body: str) -> str:
    """Escape a plain-text body and wrap it to keep its line breaks."""
    return PLAIN_TEXT_TEMPLATE.format(html.escape(body, quote=True))


def _clean_attributes(tag) -> None:
    allowed = _GLOBAL_ATTRIBUTES | ALLOWED_ATTRIBUTES.get(tag.name, frozenset())
    for name in list(tag.attrs):
        value = tag.attrs[name]
        text = " ".join(value) if isinstance(value, list) else str(value)
        key = name.lower()
        if (
            key not in allowed
            or (key in URI_ATTRIBUTES and not is_safe_uri(text))
            or (key == "style" and not is_safe_style(text))
        ):
            del tag.attrs[name]

    if tag.name == "a" and tag.get("target"):
        tag["rel"] = "noopener noreferrer"


def sanitize_html(markup: str) -> str:
    """Clean an HTML fragment against the allow-lists of this module."""
    soup = BeautifulSoup(markup, "html.parser")

    for tag in soup.find_all(sorted(DROP_TAGS)):
        tag.extract()

    for node in soup.find_all(
        string=lambda s: isinstance(s, (Comment, Declaration, Doctype, ProcessingInstruction))
    ):
        node.extract()

    for tag in soup.find_all(True):
        if tag.name not in ALLOWED_TAGS:
            tag.unwrap()
        else:
            _clean_attributes(tag)

    return soup.decode(formatter="minimal")


def render_body(body: str | None) -> str:
    """Render an email body as markup that is safe to display.

    Args:
        body: Raw body, HTML or plain text.

    Returns:
        Sanitized HTML, escaped plain text in a ``<pre>``, or ``""`` for an
        empty body.
    """
    if not body:
        return ""
    if not looks_like_html(body):
        return render_plain_text(body)
    try:
        return sanitize_html(body)
    except Exception:
        logger.warning("Could not sanitize email body, rendering as text", exc_info=True)
        return render_plain_text(body)
