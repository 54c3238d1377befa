"""Authoritative domain allowlist and hostname classification."""

from __future__ import annotations

from typing import Tuple


PRIORITY_DOMAINS: Tuple[str, ...] = (
    "cdc.gov",
    "data.census.gov",
    "census.gov",
    "countyhealthrankings.org",
    "bls.gov",
    "ers.usda.gov",
    "cms.gov",
    "hhs.gov",
    "acf.hhs.gov",
    "tn.gov",
    "vdh.virginia.gov",
    "irs.gov",
    "nces.ed.gov",
    "transportation.gov",
    "hud.gov",
    "epa.gov",
    "ucr.fbi.gov",
    "feedingamerica.org",
    "opportunityinsights.org",
    "urban.org",
    "sparkmaps.com",
    "droughtmonitor.unl.edu",
    "impactlab.org",
    "cnt.org",
    "hifld-geoplatform.opendata.arcgis.com",
)

# Flagship data index; seeded on its own and never part of the batched sweep.
AUTHORITY_INDEX_DOMAIN = "data.census.gov"

# General statistical authority family, penalized on topic-specific queries.
STATISTICAL_AUTHORITY_DOMAIN = "census.gov"


def domain_matches(hostname: str, domain: str) -> bool:
    host = str(hostname or "").strip().lower()
    entry = str(domain or "").strip().lower()
    if not host or not entry:
        return False
    return host == entry or host.endswith(f".{entry}")


def is_priority_domain(hostname: str) -> bool:
    """Exact or sub-domain match against the allowlist, case-insensitive."""
    return any(domain_matches(hostname, domain) for domain in PRIORITY_DOMAINS)


def is_authority_index(hostname: str) -> bool:
    return domain_matches(hostname, AUTHORITY_INDEX_DOMAIN)


def is_statistical_authority(hostname: str) -> bool:
    return domain_matches(hostname, STATISTICAL_AUTHORITY_DOMAIN)


def sweep_domains() -> Tuple[str, ...]:
    """Allowlist in order, minus the flagship index handled by its own seed stage."""
    return tuple(domain for domain in PRIORITY_DOMAINS if domain != AUTHORITY_INDEX_DOMAIN)
