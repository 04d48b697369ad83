"""
Content Deduplicator

Groups pages by type and collapses near-duplicates inside each group.

Similarity is word-level Jaccard over lower-cased words longer than three
characters. Two pages are duplicates when similarity exceeds the threshold
(default 0.85); the page with more words is kept.

Each group is processed in descending word count (ties broken by URL), so
the kept set depends only on the input set, never on fetch-completion order,
and running the deduplicator on its own output changes nothing.

Contact pages collapse to a single best record per site.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Tuple

from runner.logging_setup import get_logger
from site_audit.config import DEFAULT_SIMILARITY_THRESHOLD
from site_audit.models import PageRecord, PageType

logger = get_logger("content_dedup")

_WORD_RE = re.compile(r"\w+", re.UNICODE)

# Groups reported in this order; anything else follows alphabetically
GROUP_ORDER = [
    PageType.HOMEPAGE,
    PageType.CONTACT,
    PageType.SERVICE,
    PageType.LOCATION,
    PageType.SERVICE_AREA,
    PageType.ABOUT,
    PageType.PRODUCT,
    PageType.GALLERY,
    PageType.BLOG,
    PageType.OTHER,
]

SINGLE_RECORD_TYPES = {PageType.CONTACT}


def word_set(text: str) -> FrozenSet[str]:
    """Lower-cased words longer than three characters."""
    return frozenset(word for word in _WORD_RE.findall(text.lower()) if len(word) > 3)


def jaccard_similarity(a: FrozenSet[str], b: FrozenSet[str]) -> float:
    if not a and not b:
        return 1.0
    union = len(a | b)
    return len(a & b) / union if union else 0.0


def text_similarity(text_a: str, text_b: str) -> float:
    return jaccard_similarity(word_set(text_a), word_set(text_b))


def _rank_key(page: PageRecord) -> Tuple[int, str]:
    return (-page.word_count, page.normalized_url)


@dataclass
class DedupResult:
    """Deduplicated pages grouped by type."""
    groups: Dict[PageType, List[PageRecord]] = field(default_factory=dict)
    # (removed url, kept url)
    removed: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def contact(self) -> List[PageRecord]:
        return self.groups.get(PageType.CONTACT, [])

    def pages(self) -> List[PageRecord]:
        """All kept pages in a stable order: group order, then rank within group."""
        ordered: List[PageRecord] = []
        seen_types = set()
        for page_type in GROUP_ORDER:
            ordered.extend(self.groups.get(page_type, []))
            seen_types.add(page_type)
        for page_type in sorted(set(self.groups) - seen_types, key=lambda t: t.value):
            ordered.extend(self.groups[page_type])
        return ordered

    def to_dict(self) -> Dict:
        return {
            "groups": {t.value: [p.url for p in pages] for t, pages in self.groups.items()},
            "removed": [{"url": url, "duplicate_of": kept} for url, kept in self.removed],
        }


class ContentDeduplicator:
    """Collapses near-duplicate pages within each page-type group."""

    def __init__(self, threshold: float = DEFAULT_SIMILARITY_THRESHOLD):
        self.threshold = threshold

    def _collapse(self, pages: List[PageRecord], removed: List[Tuple[str, str]]) -> List[PageRecord]:
        kept: List[Tuple[PageRecord, FrozenSet[str]]] = []
        for page in sorted(pages, key=_rank_key):
            words = word_set(page.body_text)
            duplicate_of = None
            for other, other_words in kept:
                similarity = jaccard_similarity(words, other_words)
                if similarity > self.threshold:
                    duplicate_of = other
                    logger.debug(
                        f"Duplicate: {page.url} ~ {other.url} "
                        f"(similarity {similarity:.2f}, {page.word_count} vs {other.word_count} words)"
                    )
                    break
            if duplicate_of is None:
                kept.append((page, words))
            else:
                removed.append((page.url, duplicate_of.url))
        return [page for page, _ in kept]

    def deduplicate(self, pages: Iterable[PageRecord]) -> DedupResult:
        """
        Group pages by type and drop near-duplicates.

        Args:
            pages: Fetched pages in any order

        Returns:
            DedupResult with kept pages per type and the removal log
        """
        grouped: Dict[PageType, List[PageRecord]] = {}
        seen_urls = set()
        result = DedupResult()

        for page in sorted(pages, key=_rank_key):
            # Same normalized URL fetched twice (e.g. via redirect): keep the larger
            key = page.normalized_url
            if key in seen_urls:
                continue
            seen_urls.add(key)
            grouped.setdefault(page.page_type, []).append(page)

        for page_type, members in grouped.items():
            kept = self._collapse(members, result.removed)
            if page_type in SINGLE_RECORD_TYPES and len(kept) > 1:
                best, rest = kept[0], kept[1:]
                for page in rest:
                    result.removed.append((page.url, best.url))
                kept = [best]
            result.groups[page_type] = kept

        total = sum(len(group) for group in result.groups.values())
        logger.info(f"Deduplication kept {total} pages, removed {len(result.removed)}")
        return result


def deduplicate(pages: Iterable[PageRecord], threshold: float = DEFAULT_SIMILARITY_THRESHOLD) -> DedupResult:
    return ContentDeduplicator(threshold).deduplicate(pages)
