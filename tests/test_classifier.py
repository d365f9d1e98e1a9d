import re

from carbonsnap.classifier import CATEGORY_RULES, classify


def test_classify_known_products():
    assert classify("Organic Ground Beef 2 lbs") == "beef"
    assert classify("Spinach 200g") == "leafy_greens"
    assert classify("WHOLE MILK 1GAL") == "milk"
    assert classify("Cheddar block") == "cheese"
    assert classify("Beyond Burger 2 pack") == "plant_meat"
    assert classify("MacBook Air") == "laptop"


def test_classify_is_case_insensitive():
    assert classify("SALMON FILLET") == classify("salmon fillet") == "fish_farmed"


def test_first_matching_rule_wins():
    # "hamburger" also contains "ham" (pork), but beef is checked first
    assert classify("Hamburger patties") == "beef"
    # "ham" is pork before cheese is considered
    assert classify("Ham & Swiss Cheese") == "pork"
    # "kale" contains "ale" (beer), but produce is checked first
    assert classify("Kale bunch") == "leafy_greens"


def test_rule_order_is_fixed():
    order = [category for category, _ in CATEGORY_RULES]
    assert order.index("beef") < order.index("pork")
    assert order.index("cheese") < order.index("milk")
    assert order.index("leafy_greens") < order.index("beer")
    assert len(order) == len(set(order))


def test_unknown_product_falls_back_to_default():
    assert classify("xyzzy-unknown-item") == "default"
    assert classify("") == "default"
    assert classify(None) == "default"


def test_classify_with_custom_rules():
    rules = (("snacks", re.compile(r"chips|crisps", re.IGNORECASE)),)
    assert classify("Potato Chips", rules=rules) == "snacks"
    assert classify("Beef", rules=rules) == "default"
