from typing import Iterable, Optional

from bookshop.config import settings


def _rate(rate: Optional[float]) -> float:
    return settings.tax_rate if rate is None else rate


def calc_subtotal(lines: Iterable) -> float:
    # без округления при накоплении, округляем только при выводе
    return sum((line.price * line.quantity for line in lines), 0.0)


def calc_tax(subtotal: float, rate: Optional[float] = None) -> float:
    return subtotal * _rate(rate)


def calc_total(subtotal: float, rate: Optional[float] = None) -> float:
    return subtotal + calc_tax(subtotal, rate)
