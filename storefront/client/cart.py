from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, List, Optional


def cart_total(items: Iterable[dict]) -> Decimal:
    total = sum((Decimal(str(item.get("price", 0))) for item in items), Decimal("0"))
    return total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_usd(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def remove_first(items: list, product_id: str) -> list:
    """Drop the first snapshot of product_id; later duplicates stay."""
    result = list(items)
    for i, item in enumerate(result):
        if item.get("_id") == product_id:
            del result[i]
            break
    return result


def _is_snapshot(item: Any) -> bool:
    if not isinstance(item, dict) or not isinstance(item.get("_id"), str) or not item["_id"]:
        return False
    try:
        price = Decimal(str(item.get("price", 0)))
    except InvalidOperation:
        return False
    return price.is_finite() and price >= 0


def clean_items(value: Any) -> Optional[List[dict]]:
    """Cart items from an untrusted store.

    None unless the value is a list; entries without a product id or a usable
    price are dropped.
    """
    if not isinstance(value, list):
        return None
    return [item for item in value if _is_snapshot(item)]
