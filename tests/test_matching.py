"""Tests for merging, relevance filtering and the submission guard."""

import pytest

from customer_match.matching.config import MatchingConfig
from customer_match.matching.guard import MISSING_NAME, MISSING_PHONE, SubmissionGuard
from customer_match.matching.merger import merge
from customer_match.matching.relevance import RelevanceFilter
from tests.conftest import candidate


@pytest.fixture
def relevance():
    return RelevanceFilter(MatchingConfig())


@pytest.fixture
def guard():
    return SubmissionGuard(MatchingConfig())


class TestMerge:
    """Test result merging."""

    def test_name_results_first(self):
        name_results = [candidate(1, "Ali"), candidate(2, "Ali Khan")]
        phone_results = [candidate(3, "Sana")]

        merged = merge(name_results, phone_results)

        assert [c.id for c in merged] == [1, 2, 3]

    def test_overlap_kept_at_name_position(self):
        """An id returned by both lookups appears once, where the name lookup put it."""
        shared = candidate(2, "Ali Khan", "+923001234567")
        merged = merge(
            [candidate(1, "Ali"), shared],
            [shared, candidate(4, "Bilal")],
        )

        assert [c.id for c in merged] == [1, 2, 4]

    def test_duplicates_within_one_lookup_collapsed(self):
        merged = merge([candidate(1, "A"), candidate(1, "A")], [])
        assert [c.id for c in merged] == [1]

    def test_empty_inputs(self):
        assert merge([], []) == []

    def test_string_and_int_ids_are_distinct(self):
        merged = merge([candidate(1, "A")], [candidate("1", "B")])
        assert len(merged) == 2


class TestRelevanceFilter:
    """Test the relevance rules."""

    def test_fragment_substring_of_name(self, relevance):
        assert relevance.name_match(candidate(1, "Ali Khan"), "Ali")

    def test_fragment_contains_name(self, relevance):
        assert relevance.name_match(candidate(1, "Ali Khan"), "Ali Khan Store")

    def test_token_rule(self, relevance):
        assert relevance.name_match(candidate(1, "Ali Khan"), "Khan Brothers")

    def test_short_fragment_never_matches(self, relevance):
        assert not relevance.name_match(candidate(1, "Ali Khan"), "A")
        assert not relevance.name_match(candidate(1, "Ali Khan"), "  a  ")

    def test_short_tokens_ignored(self, relevance):
        """Single-letter tokens do not count for the token rule."""
        assert not relevance.name_match(candidate(1, "Ali Khan"), "k zzz")

    def test_case_insensitive(self, relevance):
        assert relevance.name_match(candidate(1, "ALI KHAN"), "ali")

    def test_nameless_candidate_kept_for_long_fragment(self, relevance):
        """An empty name is contained in any fragment of two or more characters."""
        nameless = candidate(9, "")

        assert relevance.name_match(nameless, "Ali")
        assert relevance.filter([nameless], "Ali Khan", "") == (nameless,)
        assert relevance.filter([nameless], "A", "") == ()

    def test_candidate_name_not_trimmed(self, relevance):
        padded = candidate(1, "Ali Khan ")

        assert relevance.name_match(padded, "ali khan ")
        assert not relevance.name_match(padded, "Xy ali khanz")

    def test_phone_rule(self, relevance):
        c = candidate(1, "Someone", "+92 300 1234567")
        assert relevance.phone_match(c, "30012")
        assert not relevance.phone_match(c, "3001")  # too short
        assert not relevance.phone_match(c, "99999")

    def test_phone_rule_without_candidate_phone(self, relevance):
        assert not relevance.phone_match(candidate(1, "Someone"), "30012")

    def test_either_rule_keeps_candidate(self, relevance):
        merged = [
            candidate(1, "Ali Khan", "+923001234567"),
            candidate(2, "Bilal Raza", "+923001234599"),
            candidate(3, "Usman", "+923127654321"),
        ]

        result = relevance.filter(merged, "Ali", "9230012345")

        assert isinstance(result, tuple)
        assert [c.id for c in result] == [1, 2]

    def test_cap_keeps_first_ten_in_merger_order(self, relevance):
        merged = [candidate(i, f"Ahmed {i}") for i in range(1, 16)]

        result = relevance.filter(merged, "Ahmed", "")

        assert len(result) == 10
        assert [c.id for c in result] == list(range(1, 11))

    def test_cap_is_configurable(self):
        relevance = RelevanceFilter(MatchingConfig(max_candidates=3))
        merged = [candidate(i, "Ahmed") for i in range(5)]
        assert len(relevance.filter(merged, "Ahmed", "")) == 3

    def test_irrelevant_results_dropped(self, relevance):
        """Directory search is broader than the relevance rules."""
        merged = [candidate(1, "Bilal Ahmed"), candidate(2, "Zubair")]
        assert [c.id for c in relevance.filter(merged, "ahm", "")] == [1]


class TestSubmissionGuard:
    """Test validation and the exact-duplicate veto."""

    def test_missing_fields(self, guard):
        assert guard.validate_submission("", "+92") == [MISSING_NAME, MISSING_PHONE]
        assert guard.validate_submission("  ", "+923001234567") == [MISSING_NAME]
        assert guard.validate_submission("Ali", "") == [MISSING_PHONE]

    def test_valid_submission(self, guard):
        assert guard.validate_submission("Ali", "+923001234567") == []

    def test_exact_digits_block(self, guard):
        existing = candidate(1, "Ali Khan", "+92 300 1234567")

        result = guard.check_before_create("+923001234567", [existing])

        assert result.blocked is True
        assert result.exact_match == existing

    def test_country_code_variants_do_not_block(self, guard):
        """Leading "+92" and leading "0" are not treated as the same number."""
        existing = candidate(1, "Ali Khan", "+923001234567")

        result = guard.check_before_create("0300-123-4567", [existing])

        assert result.blocked is False
        assert result.exact_match is None

    def test_containment_is_not_equality(self, guard):
        existing = candidate(1, "Ali Khan", "+923001234567")
        assert not guard.check_before_create("3001234567", [existing]).blocked

    def test_first_match_wins(self, guard):
        first = candidate(1, "First", "03001234567")
        second = candidate(2, "Second", "0300 123 4567")

        result = guard.check_before_create("0300-1234567", [first, second])

        assert result.exact_match == first

    def test_no_candidates(self, guard):
        assert not guard.check_before_create("+923001234567", []).blocked

    def test_empty_phone_never_blocks(self, guard):
        assert not guard.check_before_create("", [candidate(1, "A")]).blocked
