"""
Parsed document interface.

Analyzers and extraction only talk to ParsedDocument, never to BeautifulSoup
directly, so the parser can be swapped without touching the factor rules.
"""

import json
import re
from typing import Any, Dict, Iterable, List, Optional

from bs4 import BeautifulSoup, Tag

from site_audit.exceptions import ParseError

# Elements removed before body-text extraction
NON_CONTENT_TAGS = ["script", "style", "nav", "header", "footer", "aside", "noscript"]
NON_CONTENT_SELECTORS = [".menu", ".navigation"]
MAIN_CONTENT_SELECTOR = "main, article, .content, .main-content, #content, #main"

_WHITESPACE_RE = re.compile(r"\s+")


class ParsedDocument:
    """Typed query helpers over an HTML document."""

    def __init__(self, html: str, parser: str = "html.parser"):
        if html is None:
            raise ParseError("Cannot parse empty document")
        try:
            self._soup = BeautifulSoup(html, parser)
        except Exception as e:
            raise ParseError(f"HTML parse failed: {e}") from e
        self._html = html
        self._body_text: Optional[str] = None
        self._full_text: Optional[str] = None

    @property
    def raw_html(self) -> str:
        return self._html

    def find_all(self, *tags: str) -> List[Tag]:
        """All elements with any of the given tag names, in document order."""
        return self._soup.find_all(list(tags))

    def select(self, selector: str) -> List[Tag]:
        """All elements matching a CSS selector."""
        try:
            return self._soup.select(selector)
        except Exception as e:
            raise ParseError(f"Invalid selector {selector!r}: {e}") from e

    def select_one(self, selector: str) -> Optional[Tag]:
        matches = self.select(selector)
        return matches[0] if matches else None

    def count(self, selector: str) -> int:
        return len(self.select(selector))

    @staticmethod
    def attr(node: Tag, name: str) -> Optional[str]:
        """Attribute value as a string (multi-valued attributes are space-joined)."""
        value = node.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    @staticmethod
    def text(node: Tag) -> str:
        """Whitespace-collapsed text content of a node."""
        return _WHITESPACE_RE.sub(" ", node.get_text(" ")).strip()

    def meta(self, name: str) -> Optional[str]:
        """Content of <meta name=...> or <meta property=...>, case-insensitive."""
        wanted = name.lower()
        for node in self.find_all("meta"):
            key = (self.attr(node, "name") or self.attr(node, "property") or "").lower()
            if key == wanted:
                return self.attr(node, "content")
        return None

    def title(self) -> str:
        node = self._soup.title
        return self.text(node) if node else ""

    def html_attr(self, name: str) -> Optional[str]:
        node = self._soup.find("html")
        return self.attr(node, name) if node else None

    def has_doctype(self) -> bool:
        return self._html.lstrip()[:15].lower().startswith("<!doctype")

    def base_href(self) -> Optional[str]:
        """href of the <base> element, if any."""
        for node in self.find_all("base"):
            href = (self.attr(node, "href") or "").strip()
            if href:
                return href
        return None

    def link_href(self, rel: str) -> Optional[str]:
        """href of the first <link> whose rel contains the given value."""
        for node in self.find_all("link"):
            rels = (self.attr(node, "rel") or "").lower().split()
            if rel.lower() in rels:
                return self.attr(node, "href")
        return None

    def full_text(self) -> str:
        """Visible text of the whole document, scripts and styles excluded."""
        if self._full_text is None:
            soup = BeautifulSoup(self._html, "html.parser")
            for element in soup(["script", "style", "noscript"]):
                element.decompose()
            self._full_text = _WHITESPACE_RE.sub(" ", soup.get_text(" ")).strip()
        return self._full_text

    def body_text(self) -> str:
        """
        Main-content text with navigation chrome removed.

        Uses the first main-content container when present, otherwise the body.
        """
        if self._body_text is None:
            soup = BeautifulSoup(self._html, "html.parser")
            for element in soup(NON_CONTENT_TAGS):
                element.decompose()
            for selector in NON_CONTENT_SELECTORS:
                for element in soup.select(selector):
                    element.decompose()
            container = soup.select_one(MAIN_CONTENT_SELECTOR) or soup.body or soup
            self._body_text = _WHITESPACE_RE.sub(" ", container.get_text(" ")).strip()
        return self._body_text

    def inline_scripts(self) -> List[str]:
        return [node.get_text() for node in self.find_all("script") if not node.get("src")]

    def style_text(self) -> str:
        """Concatenated inline <style> content."""
        return "\n".join(node.get_text() for node in self.find_all("style"))

    def json_ld(self) -> List[Dict[str, Any]]:
        """Parsed JSON-LD blocks. Invalid blocks are skipped."""
        objects: List[Dict[str, Any]] = []
        for node in self.select('script[type="application/ld+json"]'):
            raw = node.string or node.get_text()
            try:
                data = json.loads(raw)
            except (ValueError, TypeError):
                continue
            objects.extend(_flatten_json_ld(data))
        return objects


def _flatten_json_ld(data: Any) -> Iterable[Dict[str, Any]]:
    if isinstance(data, list):
        for item in data:
            yield from _flatten_json_ld(item)
    elif isinstance(data, dict):
        if "@graph" in data and isinstance(data["@graph"], list):
            yield from _flatten_json_ld(data["@graph"])
        else:
            yield data


def schema_types(objects: Iterable[Dict[str, Any]]) -> List[str]:
    """@type values of structured-data objects, flattened to strings."""
    types: List[str] = []
    for obj in objects:
        value = obj.get("@type")
        if isinstance(value, list):
            types.extend(str(v) for v in value)
        elif value:
            types.append(str(value))
    return types
