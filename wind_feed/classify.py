"""
Keyword heuristics for classifying wind-energy articles.

All functions are pure and operate on lower-cased substring matches over
the article's title and description.
"""

from __future__ import annotations


# Checked in this order; the first province with any match wins.
PROVINCE_LOCATIONS: list[tuple[str, list[str]]] = [
    (
        "Munster",
        [
            "munster", "clare", "cork", "kerry", "limerick", "tipperary", "waterford",
            "ennis", "shannon", "tralee", "killarney", "clonmel", "thurles", "nenagh",
            "cahir", "dungarvan", "lismore",
        ],
    ),
    (
        "Leinster",
        [
            "leinster", "dublin", "wicklow", "wexford", "carlow", "kildare", "meath",
            "louth", "westmeath", "offaly", "laois", "longford", "kilkenny", "arklow",
            "bray", "drogheda", "dundalk", "naas", "newbridge", "navan", "trim",
            "athlone", "mullingar", "tullamore", "portlaoise",
        ],
    ),
    (
        "Connacht",
        [
            "connacht", "connaught", "galway", "mayo", "roscommon", "sligo", "leitrim",
            "castlebar", "ballina", "westport", "tuam", "ballinasloe", "athenry",
        ],
    ),
    (
        "Ulster",
        [
            "ulster", "donegal", "cavan", "monaghan", "letterkenny", "buncrana",
            "bundoran", "ballyshannon",
        ],
    ),
]

NATIONAL = "National"
PROVINCES = [name for name, _ in PROVINCE_LOCATIONS] + [NATIONAL]

CATEGORIES = ["offshore", "onshore"]
TAGS = ["offshore", "onshore", "planning", "construction"]

_PLANNING_WORDS = ("planning", "approval", "permission")
_CONSTRUCTION_WORDS = ("construction", "building", "developing")

ENERGY_KEYWORDS = [
    "wind farm",
    "wind energy",
    "wind power",
    "wind turbine",
    "offshore wind",
    "onshore wind",
    "renewable energy",
    "solar farm",
    "solar power",
    "solar panel",
    "green energy",
    "clean energy",
    "energy project",
    "battery storage",
    "grid connection",
    "climate action",
]


def classify_province(text: str) -> str:
    lowered = text.lower()
    for province, locations in PROVINCE_LOCATIONS:
        if any(location in lowered for location in locations):
            return province
    return NATIONAL


def classify_category(text: str) -> str:
    """Return "offshore" or "onshore".

    Text that mentions neither word is labelled onshore.
    """
    lowered = text.lower()
    if "offshore" in lowered:
        return "offshore"
    if "onshore" in lowered:
        return "onshore"
    return "onshore"


def classify_tags(text: str) -> list[str]:
    """Collect topic tags for an article; never returns an empty list."""
    lowered = text.lower()
    tags: list[str] = []
    if "offshore" in lowered:
        tags.append("offshore")
    if "onshore" in lowered:
        tags.append("onshore")
    if any(word in lowered for word in _PLANNING_WORDS):
        tags.append("planning")
    if any(word in lowered for word in _CONSTRUCTION_WORDS):
        tags.append("construction")
    if not tags:
        tags.append(classify_category(text))
    return tags


def is_energy_relevant(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in ENERGY_KEYWORDS)
