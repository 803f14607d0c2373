#!/usr/bin/env python
from __future__ import annotations

import argparse
import json
import random
from datetime import date, timedelta
from pathlib import Path


CATEGORIES = ["food", "transport", "shopping", "entertainment", "utilities"]
NAMES = {
    "food": ["Supermarket", "Bakery", "Takeout"],
    "transport": ["Metro ticket", "Fuel"],
    "shopping": ["Clothes", "Electronics"],
    "entertainment": ["Cinema", "Concert"],
    "utilities": ["Electricity", "Internet"],
}


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a JSON records fixture for local runs")
    parser.add_argument("--output", required=True, help="Output file path (.json)")
    parser.add_argument("--entities", type=int, default=3, help="Number of entities")
    parser.add_argument("--days", type=int, default=30, help="Days of history per entity")
    parser.add_argument("--seed", type=int, default=7, help="Random seed")
    args = parser.parse_args()

    rng = random.Random(args.seed)
    today = date.today()
    entities: dict[str, dict] = {}
    for index in range(1, args.entities + 1):
        entity_id = f"user-{index:03d}"
        transactions = []
        for offset in range(args.days):
            if rng.random() < 0.4:
                continue
            category = rng.choice(CATEGORIES)
            transactions.append(
                {
                    "date": (today - timedelta(days=offset)).isoformat(),
                    "name": rng.choice(NAMES[category]),
                    "category": category,
                    "amount": round(rng.uniform(3, 120), 2),
                    "currencyCode": "EUR",
                    "emotion": rng.randint(-10, 10),
                }
            )
        entities[entity_id] = {
            "profile": {"name": f"Sample User {index}", "currencyCode": "EUR"},
            "transactions": transactions,
        }

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps({"entities": entities}, indent=2), encoding="utf-8")

    print(f"Records fixture written: {output}")


if __name__ == "__main__":
    main()
