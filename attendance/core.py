from decimal import Decimal, ROUND_HALF_UP, getcontext

getcontext().prec = 28

TWO_PLACES = Decimal("0.01")


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_hours(value) -> float:
    """Round `value` to two decimals using ROUND_HALF_UP and return a float."""
    return float(_to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def sum_hours(values) -> float:
    """Sum hour values exactly, skipping None, and round the total once."""
    total = Decimal("0")
    for v in values:
        if v is None:
            continue
        total += _to_decimal(v)
    return round_hours(total)


def percentage(part, whole) -> float:
    """Return part/whole as a percentage rounded to two decimals, 0 when whole is 0."""
    w = _to_decimal(whole)
    if w == 0:
        return 0.0
    return round_hours(_to_decimal(part) / w * Decimal("100"))


def mean(values) -> float:
    """Arithmetic mean rounded to two decimals, 0 for an empty sequence."""
    items = [_to_decimal(v) for v in values]
    if not items:
        return 0.0
    return round_hours(sum(items, Decimal("0")) / Decimal(len(items)))
