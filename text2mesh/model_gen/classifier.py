"""Prompt classification into shape categories.

The rule table is evaluated top to bottom and the first rule with a keyword
contained in the lowercased prompt wins. Domain nouns come first (vehicles,
robots, furniture, vessels, buildings, creatures), explicit geometric
primitives next, and loose material/context hints last, so that
"wooden robot" resolves to a robot while "wooden thing" still lands on
furniture.

Keywords include Russian stems because the product was used bilingually.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


class Category(str, Enum):
    """Shape categories, one per prompt."""

    CAR = "car"
    ROBOT = "robot"
    CHAIR = "chair"
    TABLE = "table"
    VASE = "vase"
    HOUSE = "house"
    CREATURE = "creature"  # wizards, penguins, birds, animals; rendered as a sphere
    CUBE = "cube"
    SPHERE = "sphere"
    PYRAMID = "pyramid"
    DEFAULT = "default"  # rendered as a cube


@dataclass(frozen=True)
class CategoryRule:
    """A keyword rule mapping prompts to a category."""

    name: str
    category: Category
    keywords: Tuple[str, ...]

    def matches(self, lowered_prompt: str) -> Optional[str]:
        """Return the first keyword found in the prompt, if any."""
        for keyword in self.keywords:
            if keyword in lowered_prompt:
                return keyword
        return None


CATEGORY_RULES: List[CategoryRule] = [
    CategoryRule(
        "vehicle",
        Category.CAR,
        (
            "машина", "машинка", "car", "авто", "vehicle", "транспорт",
            "автомобиль", "automobile",
        ),
    ),
    CategoryRule(
        "robot",
        Category.ROBOT,
        (
            "робот", "robot", "андроид", "android", "дроид", "droid",
            "футурист", "futuristic",
        ),
    ),
    CategoryRule(
        "chair",
        Category.CHAIR,
        ("стул", "chair", "кресл", "сиденье", "seat", "armchair", "stool"),
    ),
    CategoryRule(
        "table",
        Category.TABLE,
        ("стол", "table", "поверхность", "desk", "парта"),
    ),
    CategoryRule(
        "vessel",
        Category.VASE,
        ("ваза", "vase", "кувшин", "горшок", "pot", "емкость", "jug"),
    ),
    CategoryRule(
        "building",
        Category.HOUSE,
        ("дом", "house", "домик", "здание", "building", "строение", "cottage"),
    ),
    CategoryRule(
        "creature",
        Category.CREATURE,
        (
            "пингвин", "penguin", "птица", "bird", "животное", "animal",
            "волшебник", "wizard", "magic",
        ),
    ),
    CategoryRule("cube", Category.CUBE, ("куб", "cube", "ящик", "box")),
    CategoryRule(
        "sphere",
        Category.SPHERE,
        ("сфера", "шар", "sphere", "круг", "ball", "мяч"),
    ),
    CategoryRule(
        "pyramid",
        Category.PYRAMID,
        ("пирамида", "pyramid", "треугольник", "triangle"),
    ),
    CategoryRule(
        "furniture material",
        Category.CHAIR,
        (
            "деревянн", "wooden", "обивк", "upholstered", "мягк", "soft",
            "кожан", "leather",
        ),
    ),
    CategoryRule(
        "tech context",
        Category.ROBOT,
        ("sci-fi", "космическ", "технологичн", "tech"),
    ),
]


def match_rule(prompt: str) -> Tuple[Optional[CategoryRule], Optional[str]]:
    """Find the first matching rule and the keyword that triggered it."""
    lowered = prompt.lower()
    for rule in CATEGORY_RULES:
        keyword = rule.matches(lowered)
        if keyword is not None:
            return rule, keyword
    return None, None


def classify(prompt: str) -> Category:
    """Map a prompt to exactly one category. Never fails."""
    rule, keyword = match_rule(prompt)
    if rule is None:
        logger.debug(f"No rule matched {prompt[:60]!r}, using default category")
        return Category.DEFAULT
    logger.debug(f"Rule '{rule.name}' matched {prompt[:60]!r} on keyword {keyword!r}")
    return rule.category
