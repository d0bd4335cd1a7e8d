"""
Link rewriter for moving internal links onto the target site's paths.
"""

from typing import Dict, Optional, Sequence, Tuple
from urllib.parse import urlparse

from bs4 import Tag

from ..utils.log import StageLogger
from ..utils.paths import get_domain


SKIPPED_PREFIXES = ('#', 'mailto:', 'tel:', 'javascript:', 'data:')


class LinkRewriter:
    """
    Rewrites anchor targets for the migrated site.

    Internal links whose href contains a configured pattern (case
    insensitive, longest pattern wins) are pointed at the mapped path.
    Other internal links become root-relative, and external links are
    opened in a new tab.
    """

    def __init__(
        self,
        domain: str,
        rewrites: Sequence[Tuple[str, str]] = (),
        logger: Optional[StageLogger] = None
    ):
        """
        Initialize the link rewriter.

        Args:
            domain: Host of the source site (``www.`` is ignored)
            rewrites: ``(pattern, path)`` pairs
            logger: Optional stage logger
        """
        self.domain = domain[4:] if domain.startswith('www.') else domain
        self.rewrites = sorted(
            ((pattern.lower(), path) for pattern, path in rewrites if pattern),
            key=lambda item: len(item[0]),
            reverse=True,
        )
        self.logger = logger

    def match_rewrite(self, href: str) -> Optional[str]:
        """Return the mapped path for the longest pattern found in ``href``."""
        lowered = href.lower()
        for pattern, path in self.rewrites:
            if pattern in lowered:
                return path
        return None

    def is_internal(self, href: str) -> bool:
        if href.startswith(('http://', 'https://', '//')):
            return get_domain(href if not href.startswith('//') else 'https:' + href) == self.domain
        return True

    def rewrite_href(self, href: str) -> Tuple[str, bool]:
        """
        Compute the new href.

        Args:
            href: Original href value

        Returns:
            Tuple of (new href, is_external)
        """
        if not self.is_internal(href):
            return href, True

        mapped = self.match_rewrite(href)
        if mapped:
            return mapped, False

        if href.startswith(('http://', 'https://', '//')):
            parsed = urlparse(href if not href.startswith('//') else 'https:' + href)
            relative = parsed.path or '/'
            if parsed.query:
                relative += '?' + parsed.query
            if parsed.fragment:
                relative += '#' + parsed.fragment
            return relative, False

        if href.startswith('/') or href.startswith('./') or '..' in href:
            return href, False

        return '/' + href, False

    def rewrite_links(self, root: Tag) -> Dict[str, int]:
        """
        Rewrite every ``a[href]`` under ``root``.

        Returns:
            Counts of internal, external and skipped links
        """
        counts = {'internal': 0, 'external': 0, 'skipped': 0}

        for anchor in root.find_all('a', href=True):
            href = anchor.get('href', '').strip()

            if not href or href.startswith(SKIPPED_PREFIXES):
                counts['skipped'] += 1
                continue

            new_href, external = self.rewrite_href(href)
            if external:
                anchor['target'] = '_blank'
                anchor['rel'] = 'noopener noreferrer'
                counts['external'] += 1
                continue

            if new_href != href and self.logger:
                self.logger.debug(f"Link rewritten: {href} -> {new_href}")
            anchor['href'] = new_href
            counts['internal'] += 1

        return counts
