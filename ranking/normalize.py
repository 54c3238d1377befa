"""Provider row validation, URL canonicalization and the core-term gate."""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Optional, Sequence
from urllib.parse import urlsplit, urlunsplit

from pydantic import ValidationError

from core import NormalizedResult, RawResultRow
from .domains import is_priority_domain
from .query_context import QueryContext
from .scoring import score_result


logger = logging.getLogger(__name__)


def _raw_row(row: Any) -> Optional[RawResultRow]:
    try:
        if isinstance(row, Mapping):
            return RawResultRow.model_validate(dict(row))
        return RawResultRow.model_validate(row, from_attributes=True)
    except ValidationError:
        return None


def extract_domain(url: str) -> str:
    try:
        parsed = urlsplit(str(url or "").strip())
    except ValueError:
        return ""
    if parsed.scheme.lower() not in {"http", "https"}:
        return ""
    try:
        return str(parsed.hostname or "").lower()
    except ValueError:
        return ""


def canonical_url(url: str) -> str:
    """Lowercase scheme/host, drop the fragment and trailing slashes on non-root paths."""
    value = str(url or "").strip()
    try:
        parsed = urlsplit(value)
    except ValueError:
        return value
    if not parsed.scheme or not parsed.netloc:
        return value

    path = parsed.path or "/"
    if path != "/":
        path = re.sub(r"/+$", "", path) or "/"
    return urlunsplit((parsed.scheme.lower(), parsed.netloc.lower(), path, parsed.query, ""))


def matches_core_terms(title: str, snippet: str, url: str, core_terms: Sequence[str]) -> bool:
    if not core_terms:
        return True
    haystacks = (title.lower(), snippet.lower(), url.lower())
    return any(term in text for term in core_terms for text in haystacks)


def normalize_row(row: Any, context: QueryContext) -> Optional[NormalizedResult]:
    """Accepted, scored result or None for malformed / off-topic rows."""
    raw = _raw_row(row)
    if raw is None:
        logger.debug("row_dropped reason=malformed row=%r", row)
        return None
    title, url, snippet = raw.title, raw.url, raw.snippet
    domain = extract_domain(url)

    if not title or not url or not domain:
        logger.debug("row_dropped reason=malformed url=%r", url)
        return None

    if not matches_core_terms(title, snippet, url, context.core_terms):
        logger.debug("row_dropped reason=core_term_gate url=%r", url)
        return None

    is_priority = is_priority_domain(domain)
    score = score_result(title=title, snippet=snippet, url=url, domain=domain, is_priority=is_priority, context=context)
    return NormalizedResult(
        title=title,
        url=url,
        snippet=snippet,
        domain=domain,
        is_priority=is_priority,
        score=score,
        url_key=canonical_url(url),
    )
