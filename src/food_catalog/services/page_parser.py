"""Parsers for fddb.info search listings and food detail pages."""

import math
import re

from lxml import etree, html

from food_catalog.domain.catalog import FoodItem
from food_catalog.domain.nutrition import NutritionProfile, NutritionValue

ITEM_PATH_PREFIX = "/db/de/lebensmittel/"

# Nutrition field -> label shown on the source's detail page.
NUTRIENT_LABELS: dict[str, str] = {
    "kilojoules": "Brennwert",
    "calories": "Kalorien",
    "protein": "Protein",
    "fat": "Fett",
    "carbohydrates_total": "Kohlenhydrate",
    "carbohydrates_sugar": "Zucker",
    "carbohydrates_polyols": "Polyole",
    "fiber": "Ballaststoffe",
    "caffeine": "Koffein",
    "salt": "Salz",
    "iron": "Eisen",
    "zinc": "Zink",
    "magnesium": "Magnesium",
    "chloride": "Chlorid",
    "manganese": "Mangan",
    "sulfur": "Schwefel",
    "potassium": "Kalium",
    "calcium": "Kalzium",
    "phosphorus": "Phosphor",
    "copper": "Kupfer",
    "fluoride": "Fluorid",
    "iodine": "Jod",
}

_NOT_AVAILABLE_PREFIXES = ("k.a", "k. a", "n/a", "n.a")


class PageParseError(ValueError):
    """Raised when markup is not a recognizable food page."""


def parse_search_links(markup: str, item_prefix: str = ITEM_PATH_PREFIX) -> list[str]:
    """Return unique item-detail paths from a search listing, in page order."""
    document = _load(markup)
    if document is None:
        return []
    link_pattern = re.compile(
        r"window\.location\.href='(" + re.escape(item_prefix) + r"[^']+)'"
    )
    nodes = document.xpath(
        f"//div[starts-with(@onclick, \"window.location.href='{item_prefix}\")]"
    )
    links: list[str] = []
    for node in nodes:
        match = link_pattern.search(node.get("onclick", ""))
        if match and match.group(1) not in links:
            links.append(match.group(1))
    return links


def parse_food_page(markup: str, url: str) -> FoodItem:
    """Parse a food detail page into an unpersisted food item."""
    document = _load(markup)
    if document is None:
        raise PageParseError(f"Empty page at {url}")
    name = _first_text(document, "//h1[@id='fddb-headline1']")
    if not name:
        raise PageParseError(f"No food headline at {url}")

    image_nodes = document.xpath("//img[@class='imagesimpleborder']")
    ean_text = _first_text(document, "//p[contains(., 'EAN:')]")
    ean = ean_text.split("EAN:")[-1].strip() if ean_text else ""

    return FoodItem(
        name=name,
        url=url,
        description=_first_text(document, "//p[@class='lidesc2012']")
        or "No description available",
        image_url=image_nodes[0].get("src", "") if image_nodes else "",
        brand=_first_text(
            document, "//span[contains(text(), 'Hersteller:')]/following-sibling::a"
        )
        or "Unknown",
        ean=ean or None,
        tags=[
            tag.text_content().strip()
            for tag in document.xpath("//h2[@id='fddb-headline2']//a")
            if tag.text_content().strip()
        ],
        nutrition=NutritionProfile(
            **{
                field_name: _nutrition_value(document, label)
                for field_name, label in NUTRIENT_LABELS.items()
            }
        ),
    )


def parse_nutrition_value(raw: str | None) -> NutritionValue:
    """Parse text such as ``"12,5 g"`` into a value and unit.

    Numbers use a comma as decimal separator; the unit is whatever follows the
    first whitespace. Missing or "not available" text maps to ``(0, "")``.
    """
    text = (raw or "").strip().lower()
    if not text or text.startswith(_NOT_AVAILABLE_PREFIXES):
        return NutritionValue()
    parts = text.split(maxsplit=1)
    unit = parts[1].strip() if len(parts) > 1 else ""
    try:
        value = float(parts[0].replace(",", "."))
    except ValueError:
        value = 0.0
    if not math.isfinite(value):
        value = 0.0
    return NutritionValue(value=value, unit=unit)


def _load(markup: str) -> html.HtmlElement | None:
    if not markup or not markup.strip():
        return None
    try:
        return html.fromstring(markup)
    except etree.ParserError:
        return None


def _first_text(document: html.HtmlElement, expression: str) -> str:
    nodes = document.xpath(expression)
    if not nodes:
        return ""
    return nodes[0].text_content().strip()


def _nutrition_value(document: html.HtmlElement, label: str) -> NutritionValue:
    nodes = document.xpath(
        f"//*[self::a or self::span][contains(text(), '{label}')]"
        "/parent::div/following-sibling::div[1]"
    )
    if not nodes:
        return NutritionValue()
    return parse_nutrition_value(nodes[0].text_content())
