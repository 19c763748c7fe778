"""URL resolution helpers for rewriting article links to absolute form."""

from __future__ import annotations

import logging
import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

# One srcset candidate: URL, optional descriptor, separator
_SRCSET_URL_RE = re.compile(r"(\S+)(\s+[\d.]+[xw])?(\s*(?:,|$))")


def base_uri(soup: BeautifulSoup, document_uri: str) -> str:
    """Resolve the document's ``<base href>`` against *document_uri*."""
    if not document_uri:
        return ""
    base = soup.find("base", href=True)
    if not isinstance(base, Tag):
        return document_uri
    href = str(base["href"]).strip()
    try:
        return urljoin(document_uri, href)
    except ValueError as exc:
        logger.debug("Ignoring unusable <base href=%r>: %s", href, exc)
        return document_uri


def to_absolute_uri(uri: str, base: str, document_uri: str) -> str:
    """Resolve *uri* against *base*; unresolvable input comes back unchanged.

    Same-document fragments stay relative when no ``<base>`` redirects them.
    """
    if base == document_uri and uri.startswith("#"):
        return uri
    if not base:
        return uri
    try:
        return urljoin(base, uri.strip())
    except ValueError as exc:
        logger.debug("Leaving URI %r unresolved: %s", uri, exc)
        return uri


def absolutize_srcset(srcset: str, base: str, document_uri: str) -> str:
    return _SRCSET_URL_RE.sub(
        lambda m: to_absolute_uri(m.group(1), base, document_uri) + (m.group(2) or "") + m.group(3),
        srcset,
    )
