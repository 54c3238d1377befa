"""Deterministic additive scoring and the result sort key.

Every bonus and penalty is a named constant so callers and tests can refer to
individual signals. Scores are only comparable within a single run.
"""

from __future__ import annotations

from typing import FrozenSet, Tuple

from core import NormalizedResult
from .domains import domain_matches, is_authority_index, is_statistical_authority
from .query_context import QueryContext, contains_word


# domain signals
PRIORITY_DOMAIN_BONUS = 1000
AUTHORITY_INDEX_BONUS = 160
STATISTICAL_AUTHORITY_OFF_TOPIC_PENALTY = -190

# content-type signals
DATA_ASSET_HINT_BONUS = 90
MAP_HINT_BONUS = 45
DATA_FILE_EXTENSION_BONUS = 140
NON_DATA_HINT_PENALTY = -45

# core-term relevance
CORE_TERM_TITLE_BONUS = 24
CORE_TERM_SNIPPET_BONUS = 12
CORE_TERM_URL_BONUS = 8
CORE_TERM_UNIQUE_MATCH_BONUS = 18

# raw query-term relevance
QUERY_TERM_TITLE_BONUS = 8
QUERY_TERM_SNIPPET_BONUS = 4
QUERY_TERM_URL_BONUS = 3

# location signals
LOCATION_MISS_PENALTY = -90
LOCATION_MATCH_BONUS = 70

DATA_ASSET_HINTS: FrozenSet[str] = frozenset(
    {"table", "tables", "dataset", "datasets", "csv", "xlsx", "api", "download", "shapefile", "map", "dashboard"}
)
MAP_HINTS: FrozenSet[str] = frozenset({"map", "maps", "arcgis", "atlas", "gis", "geoplatform", "mapping"})
NON_DATA_HINTS: FrozenSet[str] = frozenset(
    {"news", "blog", "careers", "jobs", "privacy", "press", "newsroom", "events", "login"}
)
DATA_FILE_EXTENSIONS: Tuple[str, ...] = (
    ".csv",
    ".xlsx",
    ".xls",
    ".json",
    ".geojson",
    ".shp",
    ".zip",
    ".kml",
    ".parquet",
)


def _has_any_hint(text: str, hints: FrozenSet[str]) -> bool:
    return any(contains_word(text, hint) for hint in hints)


def _url_path(url: str) -> str:
    tail = url.split("://", 1)[-1]
    path = tail.split("/", 1)[1] if "/" in tail else ""
    return "/" + path.split("?", 1)[0].split("#", 1)[0]


def score_result(
    *,
    title: str,
    snippet: str,
    url: str,
    domain: str,
    is_priority: bool,
    context: QueryContext,
) -> int:
    lower_title = title.lower()
    lower_snippet = snippet.lower()
    lower_url = url.lower()
    combined = " ".join((lower_title, lower_snippet, lower_url))

    score = 0
    if is_priority:
        score += PRIORITY_DOMAIN_BONUS
    if is_authority_index(domain):
        score += AUTHORITY_INDEX_BONUS

    if _has_any_hint(combined, DATA_ASSET_HINTS):
        score += DATA_ASSET_HINT_BONUS
    if _has_any_hint(combined, MAP_HINTS):
        score += MAP_HINT_BONUS
    if _url_path(lower_url).endswith(DATA_FILE_EXTENSIONS):
        score += DATA_FILE_EXTENSION_BONUS
    if _has_any_hint(combined, NON_DATA_HINTS):
        score += NON_DATA_HINT_PENALTY

    for term in context.core_terms:
        in_title = term in lower_title
        in_snippet = term in lower_snippet
        in_url = term in lower_url
        if in_title:
            score += CORE_TERM_TITLE_BONUS
        if in_snippet:
            score += CORE_TERM_SNIPPET_BONUS
        if in_url:
            score += CORE_TERM_URL_BONUS
        if in_title or in_snippet or in_url:
            score += CORE_TERM_UNIQUE_MATCH_BONUS

    for term in context.query_terms:
        if term in lower_title:
            score += QUERY_TERM_TITLE_BONUS
        if term in lower_snippet:
            score += QUERY_TERM_SNIPPET_BONUS
        if term in lower_url:
            score += QUERY_TERM_URL_BONUS

    if context.location_signals:
        matched = sum(
            1
            for signal in context.location_signals
            if any(contains_word(combined, alias) for alias in signal.aliases)
        )
        if matched:
            score += LOCATION_MATCH_BONUS * matched
        else:
            score += LOCATION_MISS_PENALTY

    for rule in context.active_topic_rules:
        if any(domain_matches(domain, rule_domain) for rule_domain in rule.domains):
            score += rule.bonus

    if context.active_topic_rules and not context.has_term("census") and is_statistical_authority(domain):
        score += STATISTICAL_AUTHORITY_OFF_TOPIC_PENALTY

    return score


def sort_key(result: NormalizedResult) -> Tuple[int, bool, str, str]:
    """Score descending, then priority first, domain ascending, title ascending."""
    return (-result.score, not result.is_priority, result.domain, result.title)
