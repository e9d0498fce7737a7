# storefront/utils/money.py

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

Money = Decimal

ZERO = Decimal("0")
HUNDRED = Decimal("100")

def D(x) -> Money:
    if isinstance(x, Decimal):
        return x
    try:
        return Decimal(str(x or "0"))
    except InvalidOperation:
        raise ValueError(f"not a money value: {x!r}")

def D_opt(x):
    """Like D() but keeps None/"" as None (optional caps and thresholds)."""
    if x is None or (isinstance(x, str) and x.strip() == ""):
        return None
    return D(x)

def round_money(x: Money) -> Money:
    return D(x).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

def format_money(x, symbol: str = "€") -> str:
    return f"{symbol}{round_money(x)}"
