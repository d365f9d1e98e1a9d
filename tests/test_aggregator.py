import pytest

from carbonsnap.aggregator import aggregate, generate_equivalents, reduction_coefficient
from carbonsnap.calculator import calculate


def test_beef_and_spinach_basket():
    result = aggregate([calculate("Beef 1kg"), calculate("Spinach 200g")])

    assert [item.total_kg for item in result.items] == [pytest.approx(29.8), pytest.approx(0.76)]
    assert result.total_kg == pytest.approx(30.56)
    assert result.summary.highest_impact_category == "Beef"
    assert result.summary.reduction_potential_kg == pytest.approx(24.07)
    assert result.summary.improvement_score == 80
    assert result.equivalents[0] == "Equivalent to driving 76 miles in a gas-powered car"
    assert result.equivalents[1].startswith("Same as charging a smartphone")
    assert result.by_category == {"Beef": pytest.approx(29.8), "Leafy Greens": pytest.approx(0.76)}


def test_empty_basket():
    result = aggregate([])

    assert result.items == ()
    assert result.total_kg == 0
    assert result.equivalents == ()
    assert result.summary.highest_impact_category == "Unknown"
    assert result.summary.reduction_potential_kg == 0
    assert result.summary.improvement_score == 0
    assert result.by_category == {}


def test_total_is_sum_of_item_totals():
    items = [calculate(n) for n in ["Milk 1L", "Bananas", "Cheddar 250g", "Laptop"]]
    result = aggregate(items)
    assert result.total_kg == pytest.approx(sum(i.total_kg for i in items))
    assert 0 <= result.summary.improvement_score <= 100
    assert len(result.equivalents) <= 2


def test_categories_sum_across_items():
    result = aggregate([calculate("Beef 1kg"), calculate("Steak 1kg"), calculate("Milk 1L")])
    assert result.by_category["Beef"] == pytest.approx(59.6)
    assert list(result.by_category) == ["Beef", "Dairy"]


def test_highest_category_tie_keeps_first_seen():
    result = aggregate([calculate("Milk 1L"), calculate("Yogurt 1L"), calculate("Whole milk 1L")])
    assert result.summary.highest_impact_category == "Dairy"

    result = aggregate([calculate("Pasta 1kg"), calculate("xyzzy")])
    # pasta 1.95 kg vs general product 3.2 kg
    assert result.summary.highest_impact_category == "General Product"


@pytest.mark.parametrize(
    "category, coefficient",
    [("beef", 0.8), ("lamb", 0.8), ("milk", 0.6), ("cheese", 0.6), ("pork", 0.6), ("rice", 0.3), ("default", 0.3)],
)
def test_reduction_coefficient(category, coefficient):
    assert reduction_coefficient(category) == coefficient


def test_generate_equivalents():
    assert generate_equivalents(0.0) == []
    assert generate_equivalents(0.001) == []

    out = generate_equivalents(1.0)
    assert len(out) == 2
    assert out[0] == "Equivalent to driving 2 miles in a gas-powered car"
    assert out[1] == "Same as charging a smartphone 125 times"


def test_basket_to_dict_is_json_shaped():
    d = aggregate([calculate("Organic Ground Beef 2 lbs")]).to_dict()
    assert set(d) == {"items", "total_kg", "equivalents", "summary", "by_category"}
    assert d["items"][0]["modifiers"] == ["organic"]
    assert d["summary"]["highest_impact_category"] == "Beef"
    assert isinstance(d["equivalents"], list)


def test_basket_to_dict_rounds_total():
    result = aggregate([calculate("Beef 1kg"), calculate("Spinach 200g")])
    # exact float sum is kept on the result itself
    assert result.total_kg == 29.8 + 0.76
    assert result.to_dict()["total_kg"] == 30.56
