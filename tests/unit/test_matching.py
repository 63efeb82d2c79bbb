"""Tests for fuzzy option matching."""

from form_automation.filling.matching import (
    MATCH_STRATEGIES,
    find_best_option_match,
    find_best_option_match_any,
    match_contains,
    match_exact,
    match_word_overlap,
    word_overlap_score,
)

TOPICS = ["-- Select --", "Health Care", "Healthcare Reform", "Veterans Affairs", "Energy"]


class TestStrategies:
    """Tests for each matching strategy on its own."""

    def test_strategy_order(self):
        assert MATCH_STRATEGIES == [match_exact, match_contains, match_word_overlap]

    def test_exact_is_case_insensitive(self):
        assert match_exact("energy", TOPICS) == "Energy"
        assert match_exact("Power", TOPICS) is None

    def test_contains_either_direction(self):
        assert match_contains("Veterans", TOPICS) == "Veterans Affairs"
        assert match_contains("Energy policy", TOPICS) == "Energy"

    def test_contains_ignores_blank_options(self):
        """Test an empty placeholder option never matches by containment."""
        assert match_contains("Energy", ["", "  ", "Energy"]) == "Energy"
        assert match_contains("Anything", ["", "Other"]) is None

    def test_word_overlap_score(self):
        assert word_overlap_score("health care", "Health Care") == 4
        assert word_overlap_score("veteran", "Veterans Affairs") == 1
        assert word_overlap_score("taxes", "Energy") == 0

    def test_word_overlap_prefers_first_of_equals(self):
        assert match_word_overlap("care", ["Child Care", "Health Care"]) == "Child Care"

    def test_word_overlap_requires_positive_score(self):
        assert match_word_overlap("taxes", TOPICS) is None


class TestFindBestOptionMatch:
    """Tests for the strategy cascade."""

    def test_exact_text_of_option_is_idempotent(self):
        """Test matching an option's own text returns that option."""
        for option in TOPICS:
            assert find_best_option_match(option, TOPICS) == option

    def test_deterministic(self):
        results = {find_best_option_match("healthcare", TOPICS) for _ in range(5)}
        assert results == {"Healthcare Reform"}

    def test_falls_through_to_word_overlap(self):
        assert find_best_option_match("Affairs of veterans", TOPICS) == "Veterans Affairs"

    def test_no_match(self):
        assert find_best_option_match("Agriculture", TOPICS) is None
        assert find_best_option_match("Energy", []) is None

    def test_any_prefers_exact_on_later_spelling(self):
        """Test an exact hit on an alias beats a fuzzy hit on the first spelling."""
        options = ["NE", "NV", "Nebraska"]

        assert find_best_option_match_any(["Nevada", "NV"], options) == "NV"
