import pytest

from carbonsnap.factors import EmissionFactor, FactorTable, load_default_factors, load_emission_factors

HEADER = "category,display_name,unit,production,packaging,transport,use,disposal,organic\n"


def test_default_table_contents():
    table = load_default_factors()

    assert len(table) == 32
    assert "default" in table
    assert table.default.display_name == "General Product"
    assert table.default.stage_values() == (2.0, 0.3, 0.8, 0.0, 0.1)

    beef = table["beef"]
    assert beef.unit == "kg"
    assert beef.modifier("organic") == 0.95
    assert beef.modifier("grass_fed") == 0.9
    assert beef.modifier("local") == 1.0


def test_default_table_is_cached():
    assert load_default_factors() is load_default_factors()


def test_lookup_falls_back_to_default():
    table = load_default_factors()
    assert table.lookup("unobtainium") is table.default
    assert table.lookup("milk").display_name == "Dairy"


def test_table_is_read_only():
    table = load_default_factors()
    with pytest.raises(TypeError):
        table["beef"].modifiers["organic"] = 0.1  # type: ignore[index]
    with pytest.raises(TypeError):
        table["xyz"] = table.default  # type: ignore[index]


def test_table_requires_default():
    with pytest.raises(ValueError):
        FactorTable([EmissionFactor("beef", "Beef", "kg", 27.0, 0.5, 2.0, 0.0, 0.3)])


def test_negative_stage_rejected():
    with pytest.raises(ValueError):
        EmissionFactor("beef", "Beef", "kg", -1.0, 0.5, 2.0, 0.0, 0.3)


def test_load_custom_csv(tmp_path):
    p = tmp_path / "factors.csv"
    p.write_text(
        HEADER
        + "default,Other,item,1,0,0,0,0,\n"
        + "oat_milk,Oat Milk,L,0.9,0.1,0.2,0,0.02,0.8\n",
        encoding="utf-8",
    )

    table = load_emission_factors(p)
    assert list(table) == ["default", "oat_milk"]
    assert table["oat_milk"].modifier("organic") == pytest.approx(0.8)
    # blank cell means the modifier is undefined
    assert dict(table.default.modifiers) == {}


def test_load_csv_missing_default(tmp_path):
    p = tmp_path / "factors.csv"
    p.write_text(HEADER + "beef,Beef,kg,27,0.5,2,0,0.3,0.95\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_emission_factors(p)


def test_load_csv_negative_stage(tmp_path):
    p = tmp_path / "factors.csv"
    p.write_text(HEADER + "default,Other,item,-2,0,0,0,0,\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_emission_factors(p)


def test_load_csv_missing_columns(tmp_path):
    p = tmp_path / "factors.csv"
    p.write_text("category,production\ndefault,1\n", encoding="utf-8")
    with pytest.raises(ValueError, match="missing columns"):
        load_emission_factors(p)
