import pytest

from budget_importer.domain.money import MinorUnits, format_major, major_to_minor, minor_to_major, round_half_up
from budget_importer.domain.validation.row_rules import parse_price_text


def test_round_trip_two_decimal_value():
    minor = major_to_minor(25.89)

    assert minor == 2589
    assert isinstance(minor, MinorUnits)
    assert minor_to_major(minor) == 25.89


@pytest.mark.parametrize("major", [0.01, 0.1, 1.15, 19.99, 750.0, 1234.56, 99999.99])
def test_round_trip_holds_for_cent_values(major):
    assert minor_to_major(major_to_minor(major)) == major


def test_double_conversion_is_refused():
    with pytest.raises(TypeError):
        major_to_minor(major_to_minor(10.0))


def test_round_half_up():
    assert round_half_up(2.5) == 3.0
    assert round_half_up(0.5) == 1.0
    assert round_half_up(0.125, 2) == 0.13
    assert round_half_up(-2.5) == -3.0


def test_round_half_up_keeps_values_beyond_float_precision():
    assert round_half_up(1e30) == 1e30
    assert round_half_up(1e28, 2) == 1e28
    assert minor_to_major(10**22) == 1e20
    assert major_to_minor(1e20) == 10**22


def test_format_major():
    assert format_major(750.0) == "750,00"
    assert format_major(25.89) == "25,89"
    assert format_major(1234.5, decimal_separator=".") == "1234.50"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("750", 750.0),
        ("25,89", 25.89),
        ("25.89", 25.89),
        ("1.234,56", 1234.56),
        ("1,234.56", 1234.56),
        ("1.000", 1000.0),
        ("R$ 1.000,50", 1000.5),
        ("-5", -5.0),
    ],
)
def test_parse_price_text(text, expected):
    assert parse_price_text(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "nan", "inf"])
def test_parse_price_text_rejects(text):
    with pytest.raises(ValueError):
        parse_price_text(text)
