from __future__ import annotations

from advisor.core.parsing import (
    GENERIC_ADVICE,
    MAX_ARRAY_CANDIDATES,
    fallback_recommendations,
    parse_recommendations,
)
from advisor.core.schema import Recommendation


def test_parses_plain_json_array():
    result = parse_recommendations('[{"category":"Food","advice":"Cook more"}]')
    assert result == [Recommendation(category="Food", advice="Cook more")]


def test_non_json_text_is_wrapped_as_general():
    assert parse_recommendations("not json") == [Recommendation(category="General", advice="not json")]


def test_array_embedded_in_prose_and_code_fence():
    text = (
        "Sure! Based on the data:\n```json\n"
        '[{"category": "Savings", "advice": "Automate a transfer"}]\n```\nGood luck.'
    )
    assert parse_recommendations(text) == [Recommendation(category="Savings", advice="Automate a transfer")]


def test_malformed_entries_are_filtered_out():
    text = (
        '[{"category": "Food", "advice": "Cook more"}, {"category": "", "advice": "x"}, '
        '{"category": "Travel"}, "loose string", {"category": 3, "advice": "y"}]'
    )
    assert parse_recommendations(text) == [Recommendation(category="Food", advice="Cook more")]


def test_skips_arrays_without_recommendations():
    text = 'See note [1] first. [{"category": "Budgeting", "advice": "Track weekly"}]'
    assert parse_recommendations(text) == [Recommendation(category="Budgeting", advice="Track weekly")]


def test_array_of_only_malformed_entries_wraps_the_text():
    text = '[{"title": "nope"}]'
    assert parse_recommendations(text) == [Recommendation(category="General", advice=text)]


def test_unterminated_array_wraps_trimmed_text():
    text = '  [{"category": "Food", "advice": "Cook more"}  '
    assert parse_recommendations(text) == [
        Recommendation(category="General", advice='[{"category": "Food", "advice": "Cook more"}')
    ]


def test_empty_input_never_raises():
    assert parse_recommendations("") == [Recommendation(category="General", advice=GENERIC_ADVICE)]
    assert parse_recommendations(None) == [Recommendation(category="General", advice=GENERIC_ADVICE)]


def test_fallback_without_transactions():
    categories = [item.category for item in fallback_recommendations([])]
    assert categories == ["Budgeting", "Savings", "Food"]


def test_fallback_with_food_and_high_emotion_spending():
    transactions = [
        {"category": "Food", "amount": 12, "emotion": 2},
        {"category": "shopping", "amount": 90, "emotion": 7},
    ]
    categories = [item.category for item in fallback_recommendations(transactions)]
    assert categories == ["Budgeting", "Savings", "Food & Dining", "Emotional Spending"]


def test_fallback_ignores_missing_emotion():
    categories = [item.category for item in fallback_recommendations([{"category": "transport", "amount": 5}])]
    assert categories == ["Budgeting", "Savings"]


def test_deeply_nested_brackets_are_wrapped_not_raised():
    text = "[" * 5000

    assert parse_recommendations(text) == [Recommendation(category="General", advice=text)]


def test_oversized_integer_is_wrapped_not_raised():
    text = "[" + "1" * 5000 + "]"

    assert parse_recommendations(text) == [Recommendation(category="General", advice=text)]


def test_scan_stops_after_bounded_number_of_candidates():
    noise = "[1] " * (MAX_ARRAY_CANDIDATES + 1)
    text = noise + '[{"category": "Food", "advice": "Cook more"}]'

    assert parse_recommendations(text) == [Recommendation(category="General", advice=text.strip())]
