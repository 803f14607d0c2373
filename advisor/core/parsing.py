"""Extraction of recommendation objects from generated text."""

from __future__ import annotations

import json
from typing import Any, Iterable

from advisor.core.schema import Recommendation

GENERAL_CATEGORY = "General"
GENERIC_ADVICE = (
    "Review your spending patterns and consider setting a monthly budget to improve your financial health."
)
FOOD_CATEGORIES = {"food", "dining"}
HIGH_EMOTION_THRESHOLD = 3
# upper bound on "[" positions tried before giving up on structured output
MAX_ARRAY_CANDIDATES = 64

_decoder = json.JSONDecoder()


def _coerce_entries(items: list[Any]) -> list[Recommendation]:
    recommendations: list[Recommendation] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        category = item.get("category")
        advice = item.get("advice")
        if not isinstance(category, str) or not isinstance(advice, str):
            continue
        if not category.strip() or not advice.strip():
            continue
        recommendations.append(Recommendation(category=category.strip(), advice=advice.strip()))
    return recommendations


def _first_json_array(text: str) -> list[Recommendation]:
    position = text.find("[")
    attempts = 0
    while position != -1 and attempts < MAX_ARRAY_CANDIDATES:
        attempts += 1
        try:
            value, _ = _decoder.raw_decode(text, position)
        except (ValueError, RecursionError):
            # JSONDecodeError is a ValueError; oversized integers and deep nesting raise too
            value = None
        if isinstance(value, list):
            recommendations = _coerce_entries(value)
            if recommendations:
                return recommendations
        position = text.find("[", position + 1)
    return []


def parse_recommendations(raw_text: str | None) -> list[Recommendation]:
    """Return the recommendations embedded in ``raw_text``.

    The first JSON array holding well-formed ``{"category", "advice"}`` objects
    wins; malformed entries are dropped. Anything else is wrapped as a single
    ``General`` recommendation. This function never raises.
    """

    if raw_text is None:
        raw_text = ""
    elif not isinstance(raw_text, str):
        raw_text = str(raw_text)

    text = raw_text.strip()
    if not text:
        return [Recommendation(category=GENERAL_CATEGORY, advice=GENERIC_ADVICE)]

    recommendations = _first_json_array(text)
    if recommendations:
        return recommendations
    return [Recommendation(category=GENERAL_CATEGORY, advice=text)]


def _as_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def fallback_recommendations(transactions: Iterable[dict[str, Any]] | None) -> list[Recommendation]:
    """Deterministic advice used when generation is skipped or fails."""

    records = list(transactions or [])
    recommendations = [
        Recommendation(
            category="Budgeting",
            advice="Review your monthly expenses and create a budget to track spending patterns.",
        ),
        Recommendation(
            category="Savings",
            advice="Consider setting aside 10-15% of your income for emergency savings.",
        ),
    ]

    if not records:
        recommendations.append(
            Recommendation(
                category="Food",
                advice="Reduce takeout expenses by planning meals and cooking more at home.",
            )
        )
        return recommendations

    categories = {str(record.get("category") or "").strip().lower() for record in records}
    if categories & FOOD_CATEGORIES:
        recommendations.append(
            Recommendation(
                category="Food & Dining",
                advice="Reduce takeout expenses by planning meals and cooking more at home.",
            )
        )
    if any(_as_number(record.get("emotion")) > HIGH_EMOTION_THRESHOLD for record in records):
        recommendations.append(
            Recommendation(
                category="Emotional Spending",
                advice=(
                    "Consider implementing a 24-hour waiting period before making high-emotion purchases "
                    "to avoid impulse buying."
                ),
            )
        )
    return recommendations


__all__ = ["GENERAL_CATEGORY", "fallback_recommendations", "parse_recommendations"]
