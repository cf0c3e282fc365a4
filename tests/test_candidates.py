"""
Tests for acquire/candidates.py.

- Generation never raises and is never empty for a non-empty id
- Strategy order and priority ranks
- Manufacturer inference (first match, table order, fallback set)
- Deduplication keeps the earliest occurrence and is idempotent
"""

import sys
from pathlib import Path

# Ensure project root on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from acquire.candidates import (
    FALLBACK_MANUFACTURERS,
    GENERIC_DOCUMENT_PATTERNS,
    clean_component_id,
    dedupe,
    generate_candidates,
    hosting_mirror_urls,
    infer_manufacturer,
    infer_manufacturers,
    manufacturer_urls,
    search_pattern_urls,
    strategy_counts,
    type_specific_urls,
)
from acquire.schema import Candidate


STRATEGY_ORDER = [
    "aggregator_primary",
    "manufacturer_direct",
    "search_pattern",
    "hosting_mirror",
    "type_specific",
]


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

class TestGenerateCandidates:

    @pytest.mark.parametrize("component_id", [
        "LM358", "ESP32-WROOM-32", "x", "  ne555  ", "AT mega/328P?", "µA741", "🙂", "1N4148",
    ])
    def test_never_empty_for_non_empty_id(self, component_id):
        candidates = generate_candidates(component_id)
        assert len(candidates) >= 1
        assert all(c.source_url.startswith(("https://", "http://")) for c in candidates)

    def test_blank_id_yields_nothing(self):
        assert generate_candidates("") == []
        assert generate_candidates("   ") == []

    def test_strategies_appear_in_fixed_order(self):
        tags = [c.strategy_tag for c in generate_candidates("LM358", "IC")]
        seen = list(dict.fromkeys(tags))
        assert seen == STRATEGY_ORDER

    def test_priority_rank_is_position(self):
        candidates = generate_candidates("LM358")
        assert [c.priority_rank for c in candidates] == list(range(len(candidates)))

    def test_first_candidate_is_aggregator(self):
        first = generate_candidates("LM358")[0]
        assert first.strategy_tag == "aggregator_primary"
        assert "alldatasheet.com" in first.source_url
        assert "LM358" in first.source_url

    def test_type_specific_only_with_type(self):
        untyped = generate_candidates("LM358")
        assert not any(c.strategy_tag == "type_specific" for c in untyped)

    def test_type_lookup_is_case_insensitive(self):
        assert type_specific_urls("IRF540", "MOSFET") == type_specific_urls("IRF540", "mosfet")
        assert type_specific_urls("IRF540", "MOSFET")

    def test_unknown_type_adds_nothing(self):
        assert type_specific_urls("LM358", "Flux Capacitor") == []

    def test_hyphenated_id_adds_variations(self):
        urls = [c.source_url for c in generate_candidates("ESP32-WROOM")]
        assert any("ESP32WROOM" in u for u in urls)
        assert any("ESP32%20WROOM" in u for u in urls)

    def test_query_values_are_encoded(self):
        urls = [c.source_url for c in generate_candidates("AT mega")]
        assert any("Searchword=AT+mega" in u for u in urls)
        assert not any(" " in u for u in urls)

    def test_hosting_mirrors_present(self):
        urls = hosting_mirror_urls("LM358")
        assert any("octopart" in u for u in urls)
        assert any("datasheet4u" in u.lower() for u in urls)

    def test_deterministic(self):
        assert generate_candidates("NE555", "IC") == generate_candidates("NE555", "IC")

    def test_candidates_are_immutable(self):
        c = generate_candidates("LM358")[0]
        with pytest.raises(Exception):
            c.source_url = "https://elsewhere"


# ---------------------------------------------------------------------------
# Manufacturer inference
# ---------------------------------------------------------------------------

class TestManufacturerInference:

    def test_first_match_wins(self):
        assert infer_manufacturer("LM358") == "ti"
        assert infer_manufacturer("STM32F103") == "st"
        assert infer_manufacturer("IRF540") == "infineon"

    def test_no_match_returns_none(self):
        assert infer_manufacturer("QQQ123") is None

    def test_esp_ids_use_fallback_set(self):
        assert infer_manufacturer("ESP32") is None
        assert infer_manufacturers("ESP32") == list(FALLBACK_MANUFACTURERS)

    def test_fallback_set_when_nothing_matches(self):
        assert infer_manufacturers("QQQ123") == list(FALLBACK_MANUFACTURERS)

    def test_limit_respected(self):
        assert len(infer_manufacturers("QQQ123", limit=2)) == 2

    def test_custom_table(self):
        import re
        table = [(re.compile(r"^zz"), "zeta"), (re.compile(r"^z"), "zed")]
        assert infer_manufacturer("ZZ9", patterns=table) == "zeta"
        assert infer_manufacturers("ZZ9", patterns=table) == ["zeta", "zed"]

    def test_search_patterns_rank_generic_mirrors_first(self):
        urls = search_pattern_urls("LM358")
        generic = len(GENERIC_DOCUMENT_PATTERNS)
        assert "alldatasheet.com" in urls[0]
        assert urls[generic:]
        assert all("ti.com" in u for u in urls[generic:])

    def test_manufacturer_urls_use_cleaned_id(self):
        urls = manufacturer_urls("LM358")
        assert urls
        assert all(u.endswith("lm358.pdf") for u in urls)


class TestCleanComponentId:

    def test_strips_punctuation_but_keeps_hyphen(self):
        assert clean_component_id("AT mega/328-P?") == "ATmega328-P"


# ---------------------------------------------------------------------------
# Deduplication
# ---------------------------------------------------------------------------

class TestDedupe:

    def test_strings(self):
        assert dedupe(["a", "b", "a"]) == ["a", "b"]

    def test_idempotent(self):
        x = ["c", "a", "c", "b", "a"]
        assert dedupe(dedupe(x)) == dedupe(x)

    def test_keeps_highest_priority_occurrence(self):
        first = Candidate("https://x/a", "aggregator_primary", 0)
        later = Candidate("https://x/a", "hosting_mirror", 5)
        other = Candidate("https://x/b", "search_pattern", 3)
        assert dedupe([first, other, later]) == [first, other]

    def test_generated_list_has_duplicates_removed(self):
        candidates = generate_candidates("LM358", "IC")
        unique = dedupe(candidates)
        urls = [c.source_url for c in unique]
        assert len(urls) == len(set(urls))
        assert len(unique) <= len(candidates)

    def test_strategy_counts(self):
        counts = strategy_counts(generate_candidates("LM358", "IC"))
        assert set(counts) == set(STRATEGY_ORDER)
        assert all(v > 0 for v in counts.values())
