"""Point-in-time view of a page: URL + parsed DOM.

Hidden content (script/style/noscript/template, comments) is removed at parse
time so that every scan over the document only sees rendered text. Selector
lookups never raise: an invalid selector simply matches nothing.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import cached_property, lru_cache
from urllib.parse import urlparse

import lxml.html
from cssselect import SelectorError
from lxml import etree
from lxml.cssselect import CSSSelector

from cartwise.errors import PageParseError

logger = logging.getLogger(__name__)

_HIDDEN_TAGS = ("script", "style", "noscript", "template")
_WS_RE = re.compile(r"\s+")


@lru_cache(maxsize=512)
def _compile(selector: str) -> CSSSelector | None:
    try:
        return CSSSelector(selector, translator="html")
    except SelectorError:
        logger.debug("invalid selector skipped: %s", selector)
        return None


def parse_html(html: str) -> lxml.html.HtmlElement:
    if not html or not html.strip():
        raise PageParseError("Empty HTML input")
    try:
        parser = lxml.html.HTMLParser(recover=True, encoding="utf-8", remove_comments=True)
        doc = lxml.html.document_fromstring(html.encode("utf-8"), parser=parser)
    except (etree.ParserError, ValueError) as exc:
        raise PageParseError(f"lxml parsing failed: {exc}") from exc
    for el in doc.xpath("|".join(f"//{tag}" for tag in _HIDDEN_TAGS)):
        el.drop_tree()
    return doc


def element_text(el: lxml.html.HtmlElement) -> str:
    """Rendered text of an element with whitespace collapsed."""
    return _WS_RE.sub(" ", " ".join(el.itertext())).strip()


@dataclass
class PageSnapshot:
    url: str
    html: str = ""
    doc: lxml.html.HtmlElement | None = field(default=None, repr=False)

    @classmethod
    def from_html(cls, url: str, html: str) -> PageSnapshot:
        try:
            doc = parse_html(html)
        except PageParseError:
            logger.debug("page snapshot without document", extra={"url": url})
            doc = None
        return cls(url=url, html=html or "", doc=doc)

    @cached_property
    def _parsed_url(self):
        return urlparse(self.url or "")

    @property
    def hostname(self) -> str:
        return (self._parsed_url.hostname or "").lower()

    @property
    def path(self) -> str:
        return (self._parsed_url.path or "").lower()

    @property
    def url_lower(self) -> str:
        return (self.url or "").lower()

    @cached_property
    def visible_text(self) -> str:
        if self.doc is None:
            return ""
        return element_text(self.doc)

    def select(self, selector: str) -> list[lxml.html.HtmlElement]:
        if self.doc is None:
            return []
        compiled = _compile(selector)
        if compiled is None:
            return []
        try:
            return compiled(self.doc)
        except (etree.XPathError, ValueError):
            logger.debug("selector evaluation failed: %s", selector, exc_info=True)
            return []

    def has_any(self, selectors) -> bool:
        return any(self.select(selector) for selector in selectors)

    def elements(self):
        """All element nodes in document order."""
        if self.doc is None:
            return
        for el in self.doc.iter():
            if isinstance(el.tag, str):
                yield el
