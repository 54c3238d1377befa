from __future__ import annotations

from ranking.query_context import (
    STOP_WORDS,
    TOPIC_RULES,
    build_query_context,
    contains_word,
    rule_index,
    tokenize,
)


def test_tokenize_lowercases_dedupes_and_drops_single_chars() -> None:
    assert tokenize("Median household income by County, Tennessee a TN tn") == (
        "median",
        "household",
        "income",
        "by",
        "county",
        "tennessee",
        "tn",
    )


def test_core_terms_drop_stop_words_but_keep_median() -> None:
    context = build_query_context("Median household income by county Tennessee")
    assert "median" not in STOP_WORDS
    assert context.core_terms == ("median", "household", "income", "tennessee")
    assert [signal.signal_id for signal in context.location_signals] == ["tennessee"]
    assert context.active_topic_rules == ()


def test_core_terms_fall_back_to_query_terms_when_all_are_stop_words() -> None:
    context = build_query_context("county rates")
    assert context.core_terms == ("county", "rates")


def test_drought_query_activates_only_the_drought_rule() -> None:
    context = build_query_context("Drought monitor Tennessee counties")
    assert [rule.rule_id for rule in context.active_topic_rules] == ["drought"]
    assert rule_index()["drought"].bonus == 460
    assert context.location_terms() == ["tennessee"]
    assert context.matched_triggers(rule_index()["drought"]) == ["drought"]


def test_state_codes_count_as_location_signals() -> None:
    context = build_query_context("SNAP participation VA and KY")
    assert [signal.signal_id for signal in context.location_signals] == ["virginia", "kentucky"]
    assert [rule.rule_id for rule in context.active_topic_rules] == ["food_security"]
    assert context.location_terms(limit=1) == ["va"]


def test_topic_rule_table_bonuses_stay_in_tuned_range() -> None:
    assert len(TOPIC_RULES) == 7
    for rule in TOPIC_RULES:
        assert 390 <= rule.bonus <= 560
        assert rule.domains


def test_contains_word_respects_token_boundaries() -> None:
    assert contains_word("https://www.tn.gov/health", "tn")
    assert not contains_word("https://droughtmonitor.unl.edu/", "tn")
    assert contains_word("Maps and Atlas", "atlas")
