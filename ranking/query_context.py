"""Per-query term extraction, location signals and topic-rule activation."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Any, Dict, FrozenSet, List, Mapping, Sequence, Tuple


STOP_WORDS: FrozenSet[str] = frozenset(
    {
        # articles / conjunctions
        "the",
        "an",
        "and",
        "or",
        "vs",
        # prepositions
        "by",
        "for",
        "in",
        "of",
        "on",
        "to",
        "with",
        "from",
        "at",
        "about",
        "per",
        "across",
        "within",
        "between",
        "over",
        "under",
        "into",
        "near",
        # generic indicator words
        "rate",
        "rates",
        "county",
        "counties",
        "data",
        "statistics",
        "stats",
        "percent",
        "percentage",
        "number",
        "total",
        "level",
        "levels",
        "trend",
        "trends",
    }
)


@dataclass(frozen=True)
class TopicRule:
    rule_id: str
    trigger_terms: FrozenSet[str]
    domains: Tuple[str, ...]
    bonus: int


@dataclass(frozen=True)
class LocationSignal:
    signal_id: str
    aliases: FrozenSet[str]


# rule id -> triggers / domains / bonus; new topics are table rows, not branches.
TOPIC_RULE_TABLE: Mapping[str, Mapping[str, Any]] = {
    "chronic_absenteeism": {
        "triggers": ("absenteeism", "attendance", "truancy", "absences"),
        "domains": ("nces.ed.gov",),
        "bonus": 420,
    },
    "incarceration": {
        "triggers": ("incarceration", "incarcerated", "jail", "jails", "prison", "prisons"),
        "domains": ("ucr.fbi.gov", "urban.org"),
        "bonus": 390,
    },
    "drought": {
        "triggers": ("drought", "droughts", "aridity"),
        "domains": ("droughtmonitor.unl.edu",),
        "bonus": 460,
    },
    "economic_mobility": {
        "triggers": ("mobility", "opportunity", "upward"),
        "domains": ("opportunityinsights.org", "urban.org"),
        "bonus": 520,
    },
    "healthcare_program": {
        "triggers": ("medicaid", "medicare", "chip", "tenncare", "aca", "marketplace"),
        "domains": ("cms.gov", "hhs.gov"),
        "bonus": 430,
    },
    "food_security": {
        "triggers": ("food", "hunger", "snap", "insecurity"),
        "domains": ("feedingamerica.org", "ers.usda.gov"),
        "bonus": 560,
    },
    "transportation": {
        "triggers": ("transportation", "transit", "commute", "commuting", "vehicle", "vehicles"),
        "domains": ("transportation.gov", "cnt.org"),
        "bonus": 400,
    },
}

LOCATION_ALIAS_TABLE: Mapping[str, Sequence[str]] = {
    "tennessee": ("tn", "tennessee"),
    "virginia": ("va", "virginia"),
    "kentucky": ("ky", "kentucky"),
}


def _load_topic_rules(table: Mapping[str, Mapping[str, Any]]) -> Tuple[TopicRule, ...]:
    return tuple(
        TopicRule(
            rule_id=rule_id,
            trigger_terms=frozenset(str(term).lower() for term in entry["triggers"]),
            domains=tuple(str(domain).lower() for domain in entry["domains"]),
            bonus=int(entry["bonus"]),
        )
        for rule_id, entry in table.items()
    )


def _load_location_signals(table: Mapping[str, Sequence[str]]) -> Tuple[LocationSignal, ...]:
    return tuple(
        LocationSignal(signal_id=signal_id, aliases=frozenset(alias.lower() for alias in aliases))
        for signal_id, aliases in table.items()
    )


TOPIC_RULES: Tuple[TopicRule, ...] = _load_topic_rules(TOPIC_RULE_TABLE)
LOCATION_SIGNALS: Tuple[LocationSignal, ...] = _load_location_signals(LOCATION_ALIAS_TABLE)


@dataclass(frozen=True)
class QueryContext:
    query: str
    query_terms: Tuple[str, ...]
    core_terms: Tuple[str, ...]
    location_signals: Tuple[LocationSignal, ...]
    active_topic_rules: Tuple[TopicRule, ...]

    def has_term(self, term: str) -> bool:
        return str(term or "").lower() in set(self.query_terms)

    def location_terms(self, limit: int = 2) -> List[str]:
        aliases = set()
        for signal in self.location_signals:
            aliases.update(signal.aliases)
        return [term for term in self.query_terms if term in aliases][: max(0, int(limit))]

    def matched_triggers(self, rule: TopicRule) -> List[str]:
        return [term for term in self.query_terms if term in rule.trigger_terms]


def tokenize(value: str) -> Tuple[str, ...]:
    """Lowercase alphanumeric runs longer than one character, first-seen order."""
    tokens = re.findall(r"[a-z0-9]+", str(value or "").lower())
    output: List[str] = []
    seen = set()
    for token in tokens:
        if len(token) <= 1 or token in seen:
            continue
        seen.add(token)
        output.append(token)
    return tuple(output)


def contains_word(text: str, term: str) -> bool:
    payload = str(text or "").lower()
    token = str(term or "").strip().lower()
    if not payload or not token:
        return False
    return re.search(r"(?<![a-z0-9])" + re.escape(token) + r"(?![a-z0-9])", payload) is not None


def build_query_context(
    query: str,
    *,
    topic_rules: Sequence[TopicRule] = TOPIC_RULES,
    location_signals: Sequence[LocationSignal] = LOCATION_SIGNALS,
) -> QueryContext:
    query_terms = tokenize(query)
    term_set = set(query_terms)

    core_terms = tuple(term for term in query_terms if term not in STOP_WORDS) or query_terms
    present_locations = tuple(signal for signal in location_signals if signal.aliases & term_set)
    active_rules = tuple(rule for rule in topic_rules if rule.trigger_terms & term_set)

    return QueryContext(
        query=str(query or "").strip(),
        query_terms=query_terms,
        core_terms=core_terms,
        location_signals=present_locations,
        active_topic_rules=active_rules,
    )


def rule_index(rules: Sequence[TopicRule] = TOPIC_RULES) -> Dict[str, TopicRule]:
    return {rule.rule_id: rule for rule in rules}
