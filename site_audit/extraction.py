"""
Shared DOM extraction for both fetch paths.

The static fetcher and the render pool both end with an HTML string; this
module turns it into a PageRecord so the two paths cannot drift apart.
"""

from typing import Any, Dict, List, Optional, Tuple

from site_audit.document import ParsedDocument
from site_audit.exceptions import ParseError
from site_audit.models import FetchMethod, ImageRef, LinkRef, PageRecord
from site_audit.page_types import determine_page_type
from site_audit.urls import is_subdomain_of, resolve_url


def _int_or_none(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    digits = value.strip().lower().removesuffix("px").strip()
    try:
        return int(float(digits))
    except (ValueError, OverflowError):
        # "nan", "1e999", "auto", "100%"
        return None


def _headings(doc: ParsedDocument) -> Dict[int, Tuple[str, ...]]:
    headings: Dict[int, List[str]] = {}
    for node in doc.find_all("h1", "h2", "h3", "h4", "h5", "h6"):
        text = doc.text(node)
        if text:
            headings.setdefault(int(node.name[1]), []).append(text)
    return {level: tuple(texts) for level, texts in headings.items()}


def _images(doc: ParsedDocument, url: str) -> Tuple[ImageRef, ...]:
    images = []
    for node in doc.find_all("img"):
        src = doc.attr(node, "src") or doc.attr(node, "data-src")
        resolved = resolve_url(src, url) if src else None
        images.append(ImageRef(
            src=resolved or (src or ""),
            alt=(doc.attr(node, "alt") or "").strip(),
            width=_int_or_none(doc.attr(node, "width")),
            height=_int_or_none(doc.attr(node, "height")),
        ))
    return tuple(images)


def _links(doc: ParsedDocument, url: str) -> Tuple[LinkRef, ...]:
    links = []
    for node in doc.find_all("a"):
        resolved = resolve_url(doc.attr(node, "href") or "", url)
        if resolved is None:
            continue
        links.append(LinkRef(
            href=resolved,
            text=doc.text(node),
            is_internal=is_subdomain_of(resolved, url),
        ))
    return tuple(links)


def _resource_urls(doc: ParsedDocument, url: str) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    scripts = []
    for node in doc.find_all("script"):
        resolved = resolve_url(doc.attr(node, "src") or "", url)
        if resolved:
            scripts.append(resolved)

    stylesheets = []
    for node in doc.find_all("link"):
        rels = (doc.attr(node, "rel") or "").lower().split()
        if "stylesheet" in rels:
            resolved = resolve_url(doc.attr(node, "href") or "", url)
            if resolved:
                stylesheets.append(resolved)
    return tuple(scripts), tuple(stylesheets)


def extract_page_record(
    url: str,
    html: str,
    status_code: int,
    fetch_method: FetchMethod,
    load_time_ms: float = 0.0,
    byte_size: Optional[int] = None,
    response_headers: Optional[Dict[str, str]] = None,
    render_metrics: Optional[Dict[str, Any]] = None,
) -> PageRecord:
    """
    Build a PageRecord from fetched HTML.

    Args:
        url: Final page URL
        html: Page markup (raw response or serialized rendered DOM)
        status_code: HTTP status
        fetch_method: Static or rendered
        load_time_ms: Wall-clock fetch time in milliseconds
        byte_size: Response size in bytes (defaults to encoded HTML length)
        response_headers: Response headers, lower-cased keys
        render_metrics: Extra metrics captured inside the browser

    Returns:
        PageRecord

    Raises:
        ParseError: If the markup cannot be parsed or a field cannot be extracted
    """
    doc = ParsedDocument(html)
    try:
        return _record_from_document(
            doc, url, html, status_code, fetch_method,
            load_time_ms, byte_size, response_headers, render_metrics,
        )
    except ParseError:
        raise
    except Exception as e:
        raise ParseError(f"Extraction failed for {url}: {e}") from e


def _record_from_document(
    doc: ParsedDocument,
    url: str,
    html: str,
    status_code: int,
    fetch_method: FetchMethod,
    load_time_ms: float,
    byte_size: Optional[int],
    response_headers: Optional[Dict[str, str]],
    render_metrics: Optional[Dict[str, Any]],
) -> PageRecord:
    title = doc.title()
    meta_description = (doc.meta("description") or doc.meta("og:description") or "").strip()
    canonical_href = doc.link_href("canonical")
    canonical_url = resolve_url(canonical_href, url) if canonical_href else None

    body_text = doc.body_text()
    scripts, stylesheets = _resource_urls(doc, url)

    return PageRecord(
        url=url,
        status_code=status_code,
        html=html,
        title=title,
        meta_description=meta_description,
        canonical_url=canonical_url,
        body_text=body_text,
        word_count=len(body_text.split()),
        headings=_headings(doc),
        images=_images(doc, url),
        links=_links(doc, url),
        scripts=scripts,
        stylesheets=stylesheets,
        structured_data=tuple(doc.json_ld()),
        fetch_method=fetch_method,
        load_time_ms=load_time_ms,
        byte_size=byte_size if byte_size is not None else len(html.encode("utf-8")),
        page_type=determine_page_type(url, title, body_text),
        response_headers={k.lower(): v for k, v in (response_headers or {}).items()},
        render_metrics=render_metrics,
    )
