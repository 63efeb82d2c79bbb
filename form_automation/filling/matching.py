"""Fuzzy matching of a desired value against dropdown/radio choices.

Matching is an ordered cascade of strategies; the first strategy that
returns an option wins. Every strategy is deterministic and prefers the
first-encountered option among equals.
"""

from collections.abc import Callable, Sequence

MatchStrategy = Callable[[str, Sequence[str]], str | None]


def _normalise(text: str) -> str:
    return text.lower().strip()


def match_exact(value: str, options: Sequence[str]) -> str | None:
    """Case-insensitive equality."""
    target = _normalise(value)
    for option in options:
        if _normalise(option) == target:
            return option
    return None


def match_contains(value: str, options: Sequence[str]) -> str | None:
    """Substring containment in either direction; blank options never match."""
    target = _normalise(value)
    if not target:
        return None
    for option in options:
        candidate = _normalise(option)
        if candidate and (target in candidate or candidate in target):
            return option
    return None


def word_overlap_score(value: str, option: str) -> int:
    """2 points per equal token pair, 1 per pair where one token contains the other."""
    score = 0
    for value_word in _normalise(value).split():
        for option_word in _normalise(option).split():
            if value_word == option_word:
                score += 2
            elif value_word in option_word or option_word in value_word:
                score += 1
    return score


def match_word_overlap(value: str, options: Sequence[str]) -> str | None:
    """Highest word-overlap score; ties go to the first option; zero is no match."""
    best_match = None
    best_score = 0
    for option in options:
        score = word_overlap_score(value, option)
        if score > best_score:
            best_score = score
            best_match = option
    return best_match


MATCH_STRATEGIES: list[MatchStrategy] = [
    match_exact,
    match_contains,
    match_word_overlap,
]


def find_best_option_match(value: str, options: Sequence[str]) -> str | None:
    """Find the option that best matches ``value``, or None if nothing overlaps."""
    return find_best_option_match_any([value], options)


def find_best_option_match_any(values: Sequence[str], options: Sequence[str]) -> str | None:
    """Like ``find_best_option_match`` for several spellings of one value.

    Each strategy is tried against every spelling before moving on to the
    next, weaker strategy, so an exact hit on any spelling beats a fuzzy hit
    on the first.
    """
    for strategy in MATCH_STRATEGIES:
        for value in values:
            match = strategy(value, options)
            if match is not None:
                return match
    return None
