"""
================================================================================
FILE: docs_expert/pipeline/links.py
================================================================================

PURPOSE:
    The one place that knows what a documentation link looks like. Used by
    the Retriever (links inside retrieved passages) and by the generator
    (links the model wrote into its answer).

RULES:
    - Absolute links: any http(s) URL on the domain's site (www optional);
      domains without a site_url accept any http(s) URL
    - Relative links: "/<prefix>/..." for each of the domain's path prefixes
      (docs, guides, reference, learn, blog), made absolute with site_url
    - Trailing punctuation [.,;:!?])] and "#fragment" are stripped
    - Links shorter than MIN_SOURCE_URL_LENGTH are dropped
    - Output is deduplicated in order of first appearance

Adding a link format means adding a path prefix to the Domain, not code here.
"""

import re
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from docs_expert.config.constants import MIN_SOURCE_URL_LENGTH

from .schemas import Domain

# Characters that end a URL inside prose, markdown or code
_URL_BODY = r"[^\s)\]\[,;\"'`<>{}|\\^]+"

_TRAILING_PUNCTUATION = re.compile(r"[.,;:!?\])]+$")
_FRAGMENT = re.compile(r"#.*$")

_ANY_ABSOLUTE = re.compile(rf"https?://{_URL_BODY}")


@lru_cache(maxsize=64)
def _compile(site_url: Optional[str], prefixes: Tuple[str, ...]) -> Tuple[re.Pattern, Optional[re.Pattern]]:
    if not site_url:
        return _ANY_ABSOLUTE, None

    host = urlparse(site_url).netloc.lower()
    if host.startswith("www."):
        host = host[4:]
    absolute = re.compile(rf"https?://(?:www\.)?{re.escape(host)}/{_URL_BODY}", re.IGNORECASE)

    relative = None
    if prefixes:
        alternatives = "|".join(re.escape(p.strip("/")) for p in prefixes)
        # Not preceded by a host or another path segment
        relative = re.compile(rf"(?<![\w/.:-])/(?:{alternatives})/{_URL_BODY}")
    return absolute, relative


def clean_link(raw: str, site_url: Optional[str] = None) -> Optional[str]:
    """Normalize one raw match; None when it is too short to be a real source."""
    link = _TRAILING_PUNCTUATION.sub("", raw)
    link = _FRAGMENT.sub("", link)
    link = _TRAILING_PUNCTUATION.sub("", link)
    if link.startswith("/") and site_url:
        link = site_url.rstrip("/") + link
    if len(link) < MIN_SOURCE_URL_LENGTH:
        return None
    return link


def extract_links(
    text: str,
    site_url: Optional[str] = None,
    path_prefixes: Sequence[str] = (),
) -> List[str]:
    """Candidate documentation links in `text`, deduplicated, in order of appearance."""
    if not text:
        return []

    absolute, relative = _compile(site_url, tuple(path_prefixes))
    found: List[Tuple[int, str]] = [(m.start(), m.group(0)) for m in absolute.finditer(text)]
    if relative is not None:
        found.extend((m.start(), m.group(0)) for m in relative.finditer(text))
    found.sort(key=lambda item: item[0])

    links: List[str] = []
    for _, raw in found:
        link = clean_link(raw, site_url)
        if link and link not in links:
            links.append(link)
    return links


def extract_domain_links(text: str, domain: Domain) -> List[str]:
    return extract_links(text, domain.site_url, domain.link_path_prefixes)


def is_url(value: str) -> bool:
    return value.startswith("http://") or value.startswith("https://")


def merge_sources(*groups: Iterable[str]) -> List[str]:
    """Order-stable union of source lists."""
    merged: List[str] = []
    for group in groups:
        for source in group:
            if source and source not in merged:
                merged.append(source)
    return merged


__all__ = [
    "clean_link",
    "extract_links",
    "extract_domain_links",
    "is_url",
    "merge_sources",
]
