from __future__ import annotations

from core import CostMode
from ranking.cost_profile import COST_PROFILES, get_search_cost_config, resolve_search_cost_mode
from ranking.domains import (
    AUTHORITY_INDEX_DOMAIN,
    PRIORITY_DOMAINS,
    is_authority_index,
    is_priority_domain,
    is_statistical_authority,
    sweep_domains,
)


def test_priority_domain_exact_and_subdomain_matches() -> None:
    assert is_priority_domain("cdc.gov")
    assert is_priority_domain("www.CDC.gov")
    assert is_priority_domain("vdh.virginia.gov")
    assert not is_priority_domain("virginia.gov")
    assert not is_priority_domain("notcdc.gov")
    assert not is_priority_domain("cdc.gov.example.com")
    assert not is_priority_domain("")


def test_allowlist_order_and_sweep_excludes_authority_index() -> None:
    assert len(PRIORITY_DOMAINS) == 25
    assert PRIORITY_DOMAINS[0] == "cdc.gov"
    assert AUTHORITY_INDEX_DOMAIN not in sweep_domains()
    assert len(sweep_domains()) == 24
    assert sweep_domains()[:2] == ("cdc.gov", "census.gov")


def test_census_family_helpers() -> None:
    assert is_authority_index("data.census.gov")
    assert not is_authority_index("www.census.gov")
    assert is_statistical_authority("www.census.gov")
    assert is_statistical_authority("data.census.gov")


def test_resolve_search_cost_mode_defaults_to_economy() -> None:
    assert resolve_search_cost_mode(" Standard ") == CostMode.STANDARD
    assert resolve_search_cost_mode("premium") == CostMode.ECONOMY
    assert resolve_search_cost_mode(None) == CostMode.ECONOMY
    assert resolve_search_cost_mode(CostMode.STANDARD) == CostMode.STANDARD


def test_call_ceiling_override_accepts_only_positive_numbers() -> None:
    assert get_search_cost_config("standard", "9").provider_request_limit == 9
    assert get_search_cost_config("economy", 4).provider_request_limit == 4
    assert get_search_cost_config("economy", 0).provider_request_limit == 6
    assert get_search_cost_config("economy", -3).provider_request_limit == 6
    assert get_search_cost_config("economy", "abc").provider_request_limit == 6
    assert get_search_cost_config("unknown").mode == CostMode.ECONOMY


def test_override_does_not_mutate_shared_profile() -> None:
    get_search_cost_config("economy", 99)
    assert COST_PROFILES[CostMode.ECONOMY].provider_request_limit == 6


def test_standard_profile_is_strictly_more_generous() -> None:
    economy = COST_PROFILES[CostMode.ECONOMY]
    standard = COST_PROFILES[CostMode.STANDARD]
    assert standard.provider_request_limit > economy.provider_request_limit
    assert standard.absolute_max_results > economy.absolute_max_results
    assert standard.allow_stage_a_domain_fallback_on_422 is True
    assert economy.allow_stage_a_domain_fallback_on_422 is False
