"""
Generate career-recommendation context for a computed chart.

Produces a single JSON payload for the LLM interpretation layer.
The payload is data only: the collaborator owns the prompt wording,
the model call and the response (see career.py for the response shape).

Usage:
    python -m bazi_career.generate_context --birth-date 1990-01-01 --birth-time 00:00
"""

import argparse
import json
from typing import Optional

from bazi_career import config
from bazi_career.bazi import ChartResult, Element, TEN_GOD_CHINESE
from bazi_career.create_chart import compute_chart_from_strings


# Element → industry mapping rules given to the model
INDUSTRIES_BY_ELEMENT = {
    Element.WOOD: ["Education", "Training", "Culture", "Publishing", "Design",
                   "Agriculture", "Forestry", "Healthcare", "Environmental protection", "Furniture"],
    Element.FIRE: ["Internet", "Artificial intelligence", "Electronics", "Energy", "Food service",
                   "Beauty", "Entertainment", "Lighting"],
    Element.EARTH: ["Real estate", "Construction", "Agriculture", "Retail", "Consulting",
                    "Brokerage", "Mining", "Warehousing"],
    Element.METAL: ["Finance", "Banking", "Securities", "Military and police", "Hardware manufacturing",
                    "Automotive", "Machinery", "Jewelry and watches"],
    Element.WATER: ["Logistics", "International trade", "Tourism", "Sales", "Media and PR",
                    "Shipping", "Aquaculture", "Transportation"],
}

GENDER_LABELS = {
    "male": "乾造 (男)",
    "female": "坤造 (女)",
}


def recommendation_seed(characters) -> int:
    """
    Deterministic model seed for a chart: 32-bit string hash (s*31 + c)
    of the joined glyphs, as an absolute value.
    """
    seed = 0
    for ch in "".join(characters):
        seed = (seed * 31 + ord(ch)) & 0xFFFFFFFF
    if seed >= 0x80000000:
        seed -= 0x100000000
    return abs(seed)


def career_context(chart: ChartResult, gender: Optional[str] = None,
                   province: Optional[str] = None, city: Optional[str] = None,
                   language: str = "zh") -> dict:
    """
    Assemble the payload the career-recommendation collaborator embeds.

    Element names use `language` ("zh" matches the model's mapping rules).
    """
    def name(e):
        return e.chinese if language == "zh" else e.label

    return {
        "day_master": chart.day_master.chinese,
        "day_master_element": name(chart.day_master_element),
        "bazi": list(chart.characters),
        "wuxing": [name(e) for e in chart.elements],
        "ten_gods": [f"{g} ({TEN_GOD_CHINESE[g]})" for g in chart.ten_gods],
        "strength": chart.strength.value,
        "favorable_elements": [name(e) for e in chart.favorable_elements],
        "unfavorable_elements": [name(e) for e in chart.unfavorable_elements],
        "summary": chart.summary,
        "gender": GENDER_LABELS.get(gender) if gender else None,
        "location": {"province": province or "", "city": city or ""},
        "industry_rules": {
            name(e): INDUSTRIES_BY_ELEMENT[e] for e in chart.favorable_elements
        },
        "seed": recommendation_seed(chart.characters),
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate career recommendation context")
    parser.add_argument("--birth-date", required=True, dest="birth_date")
    parser.add_argument("--birth-time", required=True, dest="birth_time")
    parser.add_argument("--lunar", action="store_true")
    parser.add_argument("--gender", choices=["male", "female"])
    parser.add_argument("--province")
    parser.add_argument("--city")

    args = parser.parse_args()

    chart = compute_chart_from_strings(args.birth_date, args.birth_time, lunar=args.lunar,
                                       language=config.SUMMARY_LANGUAGE)
    context = career_context(chart, args.gender, args.province, args.city)
    print(json.dumps(context, indent=2, ensure_ascii=False))
