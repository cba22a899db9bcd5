from typing import Any, Dict, Mapping

REQUIRED_PRODUCT_FIELDS = ("title", "author", "category")


def require_positive_number(v: float, name: str = "value") -> None:
    if v <= 0:
        raise ValueError(f"{name} must be > 0")


def require_text(v: Any, name: str) -> str:
    s = str(v or "").strip()
    if not s:
        raise ValueError(f"{name} is required")
    return s


def require_email(v: Any) -> str:
    s = require_text(v, "email")
    if "@" not in s:
        raise ValueError("Please enter a valid email address")
    return s


def validate_product(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Returns a cleaned copy of the product fields or raises ValueError."""
    clean = dict(data)
    for key in REQUIRED_PRODUCT_FIELDS:
        clean[key] = require_text(data.get(key), key)

    try:
        price = float(data.get("price"))
    except (TypeError, ValueError):
        raise ValueError("Please enter a valid price") from None
    require_positive_number(price, "price")
    clean["price"] = price

    stock = data.get("stock") or 0
    try:
        stock = int(stock)
    except (TypeError, ValueError):
        raise ValueError("stock must be an integer") from None
    if stock < 0:
        raise ValueError("stock must be >= 0")
    clean["stock"] = stock
    return clean
