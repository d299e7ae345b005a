import pytest

from amounts import format_amount, format_balance, parse_amount, sum_amount_expression


def test_sum_amount_expression_adds_parts() -> None:
    assert sum_amount_expression("100+200") == 300
    assert sum_amount_expression("50 + 30 + 0.5") == 80.5


def test_sum_amount_expression_ignores_non_numeric_parts() -> None:
    assert sum_amount_expression(" 5 + x ") == 5
    assert sum_amount_expression("abc") == 0


def test_parse_amount_strips_currency_and_separators() -> None:
    assert parse_amount("₹1,250") == 1250


def test_parse_amount_rejects_negative_and_garbage() -> None:
    with pytest.raises(ValueError):
        parse_amount("-5")
    with pytest.raises(ValueError):
        parse_amount("ten")


def test_format_amount_drops_trailing_zero_fraction() -> None:
    assert format_amount(150.0) == "150"
    assert format_amount(12.5) == "12.5"
    assert format_amount(7) == "7"


def test_format_balance_rounds_to_two_decimals() -> None:
    assert format_balance(10, 3.333) == "6.67"
    assert format_balance(5, 10) == "-5.00"


def test_parse_amount_rejects_non_finite_values() -> None:
    for value in ("nan", "NaN", "inf", "-Infinity", "sNaN"):
        with pytest.raises(ValueError, match="Invalid amount"):
            parse_amount(value)


def test_sum_amount_expression_counts_non_finite_parts_as_zero() -> None:
    assert sum_amount_expression("nan") == 0
    assert sum_amount_expression("10+inf+5") == 15
