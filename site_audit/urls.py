"""
URL normalization and validity filtering.

Normalized form (used only as a comparison key, never fetched):
- Scheme: lowercased, kept as-is (http and https stay distinct)
- Domain: lowercased, www. prefix and default ports removed
- Path: no trailing slash (except for root "/")
- Query and fragment: removed
"""

from typing import Optional
from urllib.parse import urlparse, urljoin, urlunparse

# Non-page resources that are never fetched as pages
EXCLUDED_EXTENSIONS = {
    "pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx",
    "jpg", "jpeg", "png", "gif", "svg", "webp", "bmp", "ico",
    "zip", "rar", "gz", "tar", "7z",
    "mp4", "mp3", "avi", "mov", "wav", "webm",
    "css", "js", "xml", "json",
}

_DEFAULT_PORTS = {"http": 80, "https": 443}


def _normalize_domain(netloc: str, scheme: str) -> str:
    host = netloc.lower()
    if "@" in host:
        host = host.rsplit("@", 1)[1]
    if ":" in host:
        name, _, port = host.partition(":")
        if port.isdigit() and int(port) == _DEFAULT_PORTS.get(scheme):
            host = name
    if host.startswith("www."):
        host = host[4:]
    return host


def normalize_url(url: str) -> str:
    """
    Return the comparison key for a URL.

    Args:
        url: Absolute URL

    Returns:
        scheme://domain/path with query, fragment and trailing slash removed
    """
    parsed = urlparse(url.strip())
    scheme = parsed.scheme.lower()
    domain = _normalize_domain(parsed.netloc, scheme)
    path = parsed.path or "/"
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return urlunparse((scheme, domain, path, "", "", ""))


def extract_domain(url: str) -> Optional[str]:
    """Normalized domain of a URL, or None when it has no host."""
    parsed = urlparse(url)
    if not parsed.netloc:
        return None
    return _normalize_domain(parsed.netloc, parsed.scheme.lower())


def is_same_domain(url1: str, url2: str) -> bool:
    """True when both URLs share the same normalized domain."""
    d1, d2 = extract_domain(url1), extract_domain(url2)
    return d1 is not None and d1 == d2


def is_subdomain_of(url: str, base_url: str) -> bool:
    """True when url's host is base_url's host or one of its subdomains."""
    host, base = extract_domain(url), extract_domain(base_url)
    if not host or not base:
        return False
    return host == base or host.endswith("." + base)


def resolve_url(href: str, base_url: str) -> Optional[str]:
    """Resolve href against base_url, dropping the fragment. None for non-navigable hrefs."""
    if not href:
        return None
    href = href.strip()
    if href.startswith(("#", "mailto:", "tel:", "javascript:", "data:")):
        return None
    absolute = urljoin(base_url, href)
    parsed = urlparse(absolute)
    if parsed.scheme not in ("http", "https"):
        return None
    return urlunparse(parsed._replace(fragment=""))


def has_excluded_extension(url: str) -> bool:
    path = urlparse(url).path.lower()
    last = path.rsplit("/", 1)[-1]
    if "." not in last:
        return False
    return last.rsplit(".", 1)[-1] in EXCLUDED_EXTENSIONS


def is_valid_page_url(url: str, base_url: str, include_subdomains: bool = False) -> bool:
    """
    Check whether a URL is an auditable page of the site.

    Args:
        url: Candidate absolute URL
        base_url: Audited site's base URL
        include_subdomains: Accept subdomains of the base domain

    Returns:
        True for http(s) URLs on the site that are not file downloads
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False
    if has_excluded_extension(url):
        return False
    if include_subdomains:
        return is_subdomain_of(url, base_url)
    return is_same_domain(url, base_url)


def path_depth(url: str) -> int:
    """Number of non-empty path segments."""
    return len([segment for segment in urlparse(url).path.split("/") if segment])
