"""
BaZi (Four Pillars of Destiny) chart engine.

Handles:
- Stem/branch → element and polarity lookup
- Element distribution (counts and percentages)
- Ten Gods relationship mapping against the Day Master
- Strength heuristic and favorable/unfavorable element selection
- Chart summary text

Design principle: This module COMPUTES and FLAGS. It does not interpret.
Career interpretation is the LLM's job, fed by generate_context.py.

The pillar glyphs themselves come from the calendar adapter
(astro_calendar.py); nothing here does calendar math.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


# ============================================================
# FUNDAMENTAL DATA STRUCTURES
# ============================================================

class Polarity(Enum):
    YANG = "yang"
    YIN = "yin"


class Element(Enum):
    WOOD = "wood"
    FIRE = "fire"
    EARTH = "earth"
    METAL = "metal"
    WATER = "water"

    @property
    def chinese(self) -> str:
        return ELEMENT_CHINESE[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Strength(Enum):
    STRONG = "strong"
    WEAK = "weak"


ELEMENT_CHINESE = {
    Element.WOOD: "木",
    Element.FIRE: "火",
    Element.EARTH: "土",
    Element.METAL: "金",
    Element.WATER: "水",
}

ELEMENT_BY_NAME = {e.value: e for e in Element}
ELEMENT_BY_NAME.update({zh: e for e, zh in ELEMENT_CHINESE.items()})


@dataclass(frozen=True)
class HeavenlyStem:
    chinese: str
    pinyin: str
    element: Element
    polarity: Polarity
    index: int  # 0-9 in the cycle

    def __str__(self):
        return f"{self.pinyin} ({self.polarity.value} {self.element.value})"


@dataclass(frozen=True)
class EarthlyBranch:
    chinese: str
    pinyin: str
    animal: str
    element: Element
    polarity: Polarity
    index: int  # 0-11 in the cycle

    def __str__(self):
        return f"{self.pinyin} ({self.animal})"


@dataclass(frozen=True)
class Pillar:
    stem: HeavenlyStem
    branch: EarthlyBranch
    position: str  # "year", "month", "day", "hour"

    def __str__(self):
        return f"{self.stem.chinese}{self.branch.chinese} ({self.stem.pinyin} {self.branch.pinyin}, {self.branch.animal})"

    def to_dict(self):
        return {
            "position": self.position,
            "stem": {
                "chinese": self.stem.chinese,
                "pinyin": self.stem.pinyin,
                "element": self.stem.element.value,
                "polarity": self.stem.polarity.value,
            },
            "branch": {
                "chinese": self.branch.chinese,
                "pinyin": self.branch.pinyin,
                "animal": self.branch.animal,
                "element": self.branch.element.value,
                "polarity": self.branch.polarity.value,
            },
            "combined": f"{self.stem.chinese}{self.branch.chinese}",
            "description": str(self),
        }


# ============================================================
# STEM AND BRANCH DEFINITIONS
# ============================================================

HEAVENLY_STEMS = (
    HeavenlyStem("甲", "Jia", Element.WOOD, Polarity.YANG, 0),
    HeavenlyStem("乙", "Yi", Element.WOOD, Polarity.YIN, 1),
    HeavenlyStem("丙", "Bing", Element.FIRE, Polarity.YANG, 2),
    HeavenlyStem("丁", "Ding", Element.FIRE, Polarity.YIN, 3),
    HeavenlyStem("戊", "Wu", Element.EARTH, Polarity.YANG, 4),
    HeavenlyStem("己", "Ji", Element.EARTH, Polarity.YIN, 5),
    HeavenlyStem("庚", "Geng", Element.METAL, Polarity.YANG, 6),
    HeavenlyStem("辛", "Xin", Element.METAL, Polarity.YIN, 7),
    HeavenlyStem("壬", "Ren", Element.WATER, Polarity.YANG, 8),
    HeavenlyStem("癸", "Gui", Element.WATER, Polarity.YIN, 9),
)

# Branch polarity follows cycle parity: even index = yang
EARTHLY_BRANCHES = (
    EarthlyBranch("子", "Zi", "Rat", Element.WATER, Polarity.YANG, 0),
    EarthlyBranch("丑", "Chou", "Ox", Element.EARTH, Polarity.YIN, 1),
    EarthlyBranch("寅", "Yin", "Tiger", Element.WOOD, Polarity.YANG, 2),
    EarthlyBranch("卯", "Mao", "Rabbit", Element.WOOD, Polarity.YIN, 3),
    EarthlyBranch("辰", "Chen", "Dragon", Element.EARTH, Polarity.YANG, 4),
    EarthlyBranch("巳", "Si", "Snake", Element.FIRE, Polarity.YIN, 5),
    EarthlyBranch("午", "Wu", "Horse", Element.FIRE, Polarity.YANG, 6),
    EarthlyBranch("未", "Wei", "Goat", Element.EARTH, Polarity.YIN, 7),
    EarthlyBranch("申", "Shen", "Monkey", Element.METAL, Polarity.YANG, 8),
    EarthlyBranch("酉", "You", "Rooster", Element.METAL, Polarity.YIN, 9),
    EarthlyBranch("戌", "Xu", "Dog", Element.EARTH, Polarity.YANG, 10),
    EarthlyBranch("亥", "Hai", "Pig", Element.WATER, Polarity.YIN, 11),
)

# Lookup helpers
STEM_BY_CHINESE = {s.chinese: s for s in HEAVENLY_STEMS}
BRANCH_BY_CHINESE = {b.chinese: b for b in EARTHLY_BRANCHES}
CHARACTERS = {**STEM_BY_CHINESE, **BRANCH_BY_CHINESE}  # all 22 glyphs

PILLAR_POSITIONS = ("year", "month", "day", "hour")

# Chart character positions:
# [yearStem, yearBranch, monthStem, monthBranch, dayStem, dayBranch, hourStem, hourBranch]
CHART_SIZE = 8
MONTH_BRANCH_POSITION = 3
DAY_MASTER_POSITION = 4


def _lookup(char: str):
    try:
        return CHARACTERS[char]
    except KeyError:
        raise ValueError(f"Not a heavenly stem or earthly branch: {char!r}") from None


def element_of(char: str) -> Element:
    """Element of a stem or branch glyph."""
    return _lookup(char).element


def polarity_of(char: str) -> Polarity:
    """Polarity of a stem or branch glyph."""
    return _lookup(char).polarity


# ============================================================
# FIVE ELEMENT CYCLES
# ============================================================

# Production cycle (生): Metal → Water → Wood → Fire → Earth → Metal
PRODUCTION_CYCLE = {
    Element.METAL: Element.WATER,
    Element.WATER: Element.WOOD,
    Element.WOOD: Element.FIRE,
    Element.FIRE: Element.EARTH,
    Element.EARTH: Element.METAL,
}

# Control cycle (克): Metal → Wood → Earth → Water → Fire → Metal
CONTROL_CYCLE = {
    Element.METAL: Element.WOOD,
    Element.WOOD: Element.EARTH,
    Element.EARTH: Element.WATER,
    Element.WATER: Element.FIRE,
    Element.FIRE: Element.METAL,
}

_PRODUCED_BY = {child: mother for mother, child in PRODUCTION_CYCLE.items()}
_CONTROLLED_BY = {target: source for source, target in CONTROL_CYCLE.items()}


def mother_of(element: Element) -> Element:
    """The element that produces `element`."""
    return _PRODUCED_BY[element]


def child_of(element: Element) -> Element:
    """The element `element` produces."""
    return PRODUCTION_CYCLE[element]


def wealth_of(element: Element) -> Element:
    """The element `element` controls."""
    return CONTROL_CYCLE[element]


def officer_of(element: Element) -> Element:
    """The element that controls `element`."""
    return _CONTROLLED_BY[element]


# ============================================================
# ELEMENT DISTRIBUTION
# ============================================================

def aggregate(elements) -> tuple[dict, dict]:
    """
    Count elements across the eight chart characters.

    Returns (counts, percentages). Percentages are rounded half-up per
    element and are not renormalized, so they may sum to 99 or 101.
    """
    counts = {e: 0 for e in Element}
    for element in elements:
        counts[element] += 1

    total = sum(counts.values())
    percentages = {e: math.floor(c / total * 100 + 0.5) for e, c in counts.items()}
    return counts, percentages


# ============================================================
# TEN GODS (十神) RELATIONSHIP MAPPING
# ============================================================

DAY_MASTER = "Day Master"

TEN_GODS = {
    # (relationship, same_polarity): god_name
    ("same", True): "Parallel",
    ("same", False): "Rival Wealth",
    ("i_produce", True): "Eating God",
    ("i_produce", False): "Output God",
    ("produces_me", True): "Indirect Resource",
    ("produces_me", False): "Direct Resource",
    ("i_control", True): "Indirect Wealth",
    ("i_control", False): "Direct Wealth",
    ("controls_me", True): "Seven Killings",
    ("controls_me", False): "Direct Officer",
}

TEN_GOD_CHINESE = {
    "Parallel": "比肩",
    "Rival Wealth": "劫财",
    "Eating God": "食神",
    "Output God": "伤官",
    "Indirect Resource": "偏印",
    "Direct Resource": "正印",
    "Indirect Wealth": "偏财",
    "Direct Wealth": "正财",
    "Seven Killings": "七杀",
    "Direct Officer": "正官",
    DAY_MASTER: "日主",
}


def element_relationship(day_master_element: Element, other_element: Element) -> str:
    """Determine the elemental relationship from DM's perspective."""
    if day_master_element == other_element:
        return "same"
    elif PRODUCTION_CYCLE[day_master_element] == other_element:
        return "i_produce"
    elif PRODUCTION_CYCLE[other_element] == day_master_element:
        return "produces_me"
    elif CONTROL_CYCLE[day_master_element] == other_element:
        return "i_control"
    elif CONTROL_CYCLE[other_element] == day_master_element:
        return "controls_me"
    else:
        raise ValueError(f"No valid relationship between {day_master_element} and {other_element}")


def ten_god(day_master: str, other: str) -> str:
    """
    Determine the Ten God relationship between the Day Master and another glyph.

    Args:
        day_master: the Day Master stem glyph
        other: any stem or branch glyph in the chart

    Returns:
        One of the ten relational labels in TEN_GODS
    """
    relationship = element_relationship(element_of(day_master), element_of(other))
    same_polarity = polarity_of(day_master) == polarity_of(other)
    return TEN_GODS[(relationship, same_polarity)]


def map_ten_gods(characters) -> tuple[str, ...]:
    """Ten God label for each of the eight chart positions."""
    day_master = characters[DAY_MASTER_POSITION]
    return tuple(
        DAY_MASTER if position == DAY_MASTER_POSITION else ten_god(day_master, char)
        for position, char in enumerate(characters)
    )


# ============================================================
# STRENGTH HEURISTIC
# ============================================================

# Heuristic, not a classical algorithm. Support is scored as an integer,
# so the 4.5 cut-off means "5 or more" with no ambiguity at the boundary.
STRONG_THRESHOLD = 4.5
MONTH_BRANCH_BONUS = 1


def support_score(elements, day_master_element: Element) -> int:
    """
    Count chart elements that equal the Day Master's element or its mother,
    plus a bonus when the month branch is one of those two.
    """
    supporting = {day_master_element, mother_of(day_master_element)}
    score = sum(1 for e in elements if e in supporting)
    if elements[MONTH_BRANCH_POSITION] in supporting:
        score += MONTH_BRANCH_BONUS
    return score


def classify_strength(score: int) -> Strength:
    return Strength.STRONG if score >= STRONG_THRESHOLD else Strength.WEAK


def select_elements(day_master_element: Element, strength: Strength) -> tuple[tuple, tuple]:
    """
    Split the five elements into (favorable, unfavorable).

    A strong Day Master wants draining: child, wealth and officer.
    A weak one wants support: itself and its mother.
    """
    support = (day_master_element, mother_of(day_master_element))
    drain = (child_of(day_master_element), wealth_of(day_master_element), officer_of(day_master_element))
    if strength is Strength.STRONG:
        return drain, support
    return support, drain


# ============================================================
# SUMMARY
# ============================================================

def _element_name(element: Element, language: str) -> str:
    return element.chinese if language == "zh" else element.label


def chart_summary(day_master: str, month_branch: str, strength: Strength,
                  favorable, language: str = "en") -> str:
    """Short descriptive line for the chart, in English or Chinese."""
    dm_element = element_of(day_master)
    if language == "zh":
        return (
            f"日主{day_master}{dm_element.chinese}，生于{month_branch}月。"
            f"五行{'身强' if strength is Strength.STRONG else '身弱'}，"
            f"喜用神为{'、'.join(e.chinese for e in favorable)}。"
        )
    if language != "en":
        raise ValueError(f"Unsupported summary language: {language!r}")
    return (
        f"Day master is {day_master}{dm_element.label}, born in the {month_branch} month. "
        f"Elementally {strength.value}; favorable elements are "
        f"{', '.join(e.label for e in favorable)}."
    )


# ============================================================
# FULL CHART COMPUTATION
# ============================================================

@dataclass(frozen=True)
class ChartResult:
    characters: tuple
    elements: tuple
    ten_gods: tuple
    day_master: HeavenlyStem
    element_counts: dict
    element_percentages: dict
    support_score: int
    strength: Strength
    favorable_elements: tuple
    unfavorable_elements: tuple
    summary: str

    @property
    def day_master_element(self) -> Element:
        return self.day_master.element

    @property
    def month_branch(self) -> str:
        return self.characters[MONTH_BRANCH_POSITION]

    @property
    def pillars(self) -> list[Pillar]:
        return [
            Pillar(
                stem=STEM_BY_CHINESE[self.characters[i * 2]],
                branch=BRANCH_BY_CHINESE[self.characters[i * 2 + 1]],
                position=position,
            )
            for i, position in enumerate(PILLAR_POSITIONS)
        ]

    def to_dict(self, language: str = "en") -> dict:
        def name(e):
            return _element_name(e, language)

        return {
            "bazi": list(self.characters),
            "wuxing": [name(e) for e in self.elements],
            "ten_gods": list(self.ten_gods),
            "ten_gods_chinese": [TEN_GOD_CHINESE[g] for g in self.ten_gods],
            "day_master": {
                "stem": self.day_master.chinese,
                "pinyin": self.day_master.pinyin,
                "element": name(self.day_master.element),
                "polarity": self.day_master.polarity.value,
                "description": str(self.day_master),
            },
            "pillars": {p.position: p.to_dict() for p in self.pillars},
            "elements_count": {name(e): c for e, c in self.element_counts.items()},
            "elements_percentage": {name(e): p for e, p in self.element_percentages.items()},
            "support_score": self.support_score,
            "strength": self.strength.value,
            "favorable_elements": [name(e) for e in self.favorable_elements],
            "unfavorable_elements": [name(e) for e in self.unfavorable_elements],
            "summary": self.summary,
        }


def chart_from_characters(characters, language: str = "en") -> ChartResult:
    """
    Build a ChartResult from the eight pillar glyphs.

    Args:
        characters: 8 glyphs in [year, month, day, hour] stem/branch order
        language: "en" or "zh" for the summary line
    """
    characters = tuple(characters)
    if len(characters) != CHART_SIZE:
        raise ValueError(f"Expected {CHART_SIZE} pillar characters, got {len(characters)}")
    if characters[DAY_MASTER_POSITION] not in STEM_BY_CHINESE:
        raise ValueError(f"Day pillar stem must be a heavenly stem, got {characters[DAY_MASTER_POSITION]!r}")

    elements = tuple(element_of(c) for c in characters)
    counts, percentages = aggregate(elements)

    day_master = STEM_BY_CHINESE[characters[DAY_MASTER_POSITION]]
    gods = map_ten_gods(characters)

    score = support_score(elements, day_master.element)
    strength = classify_strength(score)
    favorable, unfavorable = select_elements(day_master.element, strength)

    summary = chart_summary(day_master.chinese, characters[MONTH_BRANCH_POSITION],
                            strength, favorable, language)

    return ChartResult(
        characters=characters,
        elements=elements,
        ten_gods=gods,
        day_master=day_master,
        element_counts=counts,
        element_percentages=percentages,
        support_score=score,
        strength=strength,
        favorable_elements=favorable,
        unfavorable_elements=unfavorable,
        summary=summary,
    )


def compute_chart(moment, calendar=None, language: str = "en") -> ChartResult:
    """
    Compute a full BaZi chart for a birth moment.

    Args:
        moment: astro_calendar.BirthMoment
        calendar: any object with eight_chars(moment); defaults to the
                  lunar_python-backed adapter
        language: summary language, "en" or "zh"

    Raises:
        CalendarResolutionError: the calendar cannot resolve the moment
    """
    if calendar is None:
        from bazi_career.astro_calendar import default_calendar
        calendar = default_calendar()

    characters = calendar.eight_chars(moment)
    logger.debug("Pillars for %s: %s", moment, "".join(characters))
    return chart_from_characters(characters, language)
