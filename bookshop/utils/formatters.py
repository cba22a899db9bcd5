from datetime import date

from bookshop.config import settings
from bookshop.constants import MONTH_NAMES


def money(v: float) -> str:
    return f"{v:.{settings.decimals}f} {settings.currency}"


def short_date(d: date) -> str:
    return f"{d.day} {MONTH_NAMES[d.month - 1]}"


def month_name(month: int) -> str:
    return MONTH_NAMES[int(month) - 1]
