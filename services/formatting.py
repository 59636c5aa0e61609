"""
Форматирование чисел и дат для карточек и детального просмотра.
"""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

DEFAULT_DATE_FORMAT = "%d.%m.%Y"

_ONE_DECIMAL = Decimal("0.1")


def _one_decimal(value: Decimal) -> str:
    return str(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def format_downloads(count: int) -> str:
    """
    1500 → "1.5K", 2500000 → "2.5M", 999 → "999".
    Округление половины вверх до одного знака (999999 → "1000.0K").
    """
    if count >= 1_000_000:
        return _one_decimal(Decimal(count) / Decimal(1_000_000)) + "M"
    if count >= 1_000:
        return _one_decimal(Decimal(count) / Decimal(1_000)) + "K"
    return str(int(count))


def format_date(value: datetime, fmt: str = DEFAULT_DATE_FORMAT) -> str:
    """Только календарная дата, без времени."""
    return value.date().strftime(fmt)
