from decimal import Decimal, InvalidOperation
from typing import Union

Number = Union[int, float]


def parse_amount(value: str) -> float:
    clean = value.strip().replace("₹", "").replace("$", "").replace(" ", "")
    clean = clean.replace(",", "")
    try:
        amount = Decimal(clean)
    except InvalidOperation as exc:
        raise ValueError("Invalid amount") from exc
    if not amount.is_finite():
        raise ValueError("Invalid amount")
    if amount < 0:
        raise ValueError("Amount must be positive")
    return float(amount)


def sum_amount_expression(value: str) -> float:
    """Add up a ``"100+200+50"`` style entry.

    Parts that are not numbers count as zero, so ``"5 + x"`` is 5.
    """
    total = 0.0
    for part in value.split("+"):
        if not part.strip():
            continue
        try:
            total += parse_amount(part)
        except ValueError:
            continue
    return total


def format_amount(value: Number) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_balance(income: Number, expense: Number) -> str:
    return f"{income - expense:.2f}"
