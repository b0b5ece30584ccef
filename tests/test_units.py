import pytest
from herbcalc.units import UnitError, UnitSession, convert_scalar, to_liters, to_milliliters

def test_pack_volume_normalisation():
    us = UnitSession()
    assert to_milliliters(us, 120) == 120
    assert to_milliliters(us, 0.12, "liter") == 120
    assert to_milliliters(us, 4, "fluid_ounce") == 118

def test_liters_for_display():
    assert to_liters(UnitSession(), 5200) == pytest.approx(5.2)

def test_convert_scalar_reports_unit():
    value, unit = convert_scalar(UnitSession(), 1, "liter", "milliliter")
    assert value == pytest.approx(1000)
    assert unit == "milliliter"

def test_bad_units_raise():
    us = UnitSession()
    with pytest.raises(UnitError):
        to_milliliters(us, 1, "bogus_unit")
    with pytest.raises(UnitError):
        to_milliliters(us, 1, "gram")

@pytest.mark.parametrize("unit", ["ml)", "(", "1/"])
def test_malformed_unit_strings_raise_unit_error(unit):
    with pytest.raises(UnitError):
        to_milliliters(UnitSession(), 1, unit)
