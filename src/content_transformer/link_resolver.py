"""Rewrite internal links to the destination documents they point at.

A link is internal when its target starts with ``./`` or ``/`` or contains
the export's origin domain. The target is normalized to an export-relative
path and looked up in the LocationMap:

1. exact match on the decoded path (``.md`` appended when it has no suffix)
2. otherwise the first mapping, in map order, whose url-encoded file name
   appears in the normalized target

Unresolvable internal links become plain text naming the original target.
Fenced code is left as written.
"""

import logging
import posixpath
import re
from typing import Optional
from urllib.parse import quote, unquote, urlparse

from src.models.page_mapping import LocationMap, PageMapping
from src.models.transform_report import TransformReport
from .line_cleanup import outside_code

logger = logging.getLogger(__name__)

# [text](target) but not ![alt](target)
LINK = re.compile(r'(?<!!)\[([^\]]+)\]\(([^)]+)\)')

# Characters encodeURIComponent leaves alone
URI_COMPONENT_SAFE = "-_.!~*'()"

UNRESOLVED_LINK_TEMPLATE = "{text} - {url} - link could not be rebuilt during migration"


def normalize_link_target(url: str, source_path: str, origin_domain: Optional[str]) -> str:
    """Turn a link target into an export-relative path.

    Args:
        url: Link target as written in the document
        source_path: Export-relative path of the linking document
        origin_domain: Host the export was produced from, if known

    Returns:
        Normalized path, or ``url`` unchanged when it is not internal
    """
    if origin_domain and origin_domain in url:
        return posixpath.normpath(urlparse(url).path or "/")
    if url.startswith("./"):
        return posixpath.normpath(posixpath.join(posixpath.dirname(source_path), url))
    if url.startswith("/"):
        return posixpath.normpath(url)
    return url


def find_mapping(target: str, location_map: LocationMap) -> Optional[PageMapping]:
    """Find the mapping a normalized link target refers to."""
    decoded = unquote(target)
    exact = decoded if posixpath.splitext(decoded)[1] else f"{decoded}.md"
    mapping = location_map.get(exact)
    if mapping is not None:
        return mapping

    for key, candidate in location_map.items():
        if quote(posixpath.basename(key), safe=URI_COMPONENT_SAFE) in target:
            return candidate
    return None


class LinkResolver:
    """Rewrites internal links against a LocationMap.

    Example:
        >>> resolver = LinkResolver(origin_domain="wiki.example.com")
        >>> resolver.resolve("[Setup](./setup)", "/docs/intro.md", location_map)
        '[Setup](https://www.notion.so/abc)'
    """

    def __init__(self, origin_domain: Optional[str] = None):
        self._origin_domain = origin_domain or None

    def is_internal(self, url: str) -> bool:
        if url.startswith("./") or url.startswith("/"):
            return True
        return bool(self._origin_domain) and self._origin_domain in url

    def resolve(
        self,
        content: str,
        source_path: str,
        location_map: LocationMap,
        report: Optional[TransformReport] = None,
    ) -> str:
        """Rewrite every internal link in ``content``.

        Args:
            content: Markdown text of the document
            source_path: Export-relative path of the document
            location_map: Frozen map of created destination documents
            report: Counters updated with rebuilt and unresolved links

        Returns:
            Markdown with internal links rewritten
        """
        def replace(match: re.Match) -> str:
            text, url = match.group(1), match.group(2).strip()
            if not self.is_internal(url):
                return match.group(0)

            target = normalize_link_target(url.split("#", 1)[0], source_path, self._origin_domain)
            mapping = find_mapping(target, location_map)
            if mapping is None:
                logger.warning(f"Link to {url} in {source_path} could not be rebuilt")
                if report is not None:
                    report.links_unresolved += 1
                return UNRESOLVED_LINK_TEMPLATE.format(text=text, url=url)

            logger.debug(f"Link {url} in {source_path} -> {mapping.url}")
            if report is not None:
                report.links_rebuilt += 1
            return f"[{text}]({mapping.url})"

        return outside_code(content, lambda text: LINK.sub(replace, text))
