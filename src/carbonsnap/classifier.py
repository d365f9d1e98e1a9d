from __future__ import annotations

import logging
import re

from .config import DEFAULT_CATEGORY

logger = logging.getLogger(__name__)


def _rule(category: str, pattern: str) -> tuple[str, re.Pattern[str]]:
    return category, re.compile(pattern, re.IGNORECASE)


# Evaluated top to bottom, first match wins. Specific families come before the
# broad ones that would otherwise swallow them ("beef" before "ham", "kale" before "ale").
CATEGORY_RULES: tuple[tuple[str, re.Pattern[str]], ...] = (
    # meat
    _rule("beef", r"beef|steak|hamburger|ribeye|sirloin|chuck|brisket|patty"),
    _rule("lamb", r"lamb|mutton"),
    _rule("pork", r"pork|bacon|ham|sausage|chorizo|pepperoni"),
    _rule("chicken", r"chicken|poultry|wing|breast|thigh|drumstick"),
    _rule("fish_farmed", r"salmon|tilapia|catfish|farmed"),
    _rule("fish_wild", r"tuna|cod|sardine|mackerel|wild|caught"),
    # dairy
    _rule("cheese", r"cheese|cheddar|mozzarella|parmesan|brie|gouda"),
    _rule("milk", r"milk|dairy|cream|yogurt|kefir"),
    _rule("eggs", r"egg|dozen"),
    # plant protein
    _rule("plant_meat", r"beyond|impossible|plant.*(?:meat|burger|sausage)|veggie.*burger|mock.*meat"),
    _rule("tofu", r"tofu|tempeh|seitan"),
    _rule("nuts", r"nuts|almond|walnut|cashew|pecan|peanut|pistachio"),
    # grains
    _rule("rice", r"rice|basmati|jasmine"),
    _rule("wheat_bread", r"bread|loaf|baguette|wheat|sourdough"),
    _rule("pasta", r"pasta|spaghetti|macaroni|linguine|penne|noodle"),
    _rule("potatoes", r"potato|russet|yukon|fries"),
    # produce
    _rule("tomatoes", r"tomato"),
    _rule("bananas", r"banana"),
    _rule("apples", r"apple|gala|fuji|granny"),
    _rule("berries", r"berry|berries"),
    _rule("leafy_greens", r"lettuce|spinach|kale|arugula|greens|salad"),
    # beverages
    _rule("coffee", r"coffee|espresso|latte|cappuccino|americano"),
    _rule("tea", r"tea|chai|herbal"),
    _rule("wine", r"wine|merlot|cabernet|chardonnay|pinot"),
    _rule("beer", r"beer|ale|lager|ipa|stout"),
    # electronics
    _rule("smartphone", r"phone|smartphone|iphone|android|mobile"),
    _rule("laptop", r"laptop|computer|macbook|notebook"),
    _rule("tablet", r"tablet|ipad|kindle"),
    # clothing
    _rule("cotton_shirt", r"(?:shirt|t-shirt|blouse|top).*cotton|cotton.*(?:shirt|t-shirt)"),
    _rule("jeans", r"jeans|denim|pants"),
    _rule("polyester_jacket", r"(?:jacket|coat|windbreaker).*polyester|polyester.*(?:jacket|coat)"),
)


def classify(
    raw_name: str,
    rules: tuple[tuple[str, re.Pattern[str]], ...] = CATEGORY_RULES,
) -> str:
    """
    Returns the category id of the first rule matching `raw_name`,
    or the default category when nothing matches.
    """
    name = "" if raw_name is None else str(raw_name)
    for category, pattern in rules:
        if pattern.search(name):
            logger.debug("Classified %r as %s", name, category)
            return category
    logger.debug("No category rule matched %r", name)
    return DEFAULT_CATEGORY
