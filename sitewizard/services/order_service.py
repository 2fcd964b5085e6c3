"""Order totals — pure arithmetic over cart line items.

Every amount is carried in integer cents; only format_cents() produces the
"12.34" strings handed to the payment provider or returned to clients.

Two policies are supported side by side and are intentionally not merged:

- payment_order_totals(): total = subtotal. This is what the hosted
  payment page charges.
- cart_checkout_totals(): subtotal + tax (CART_TAX_RATE_BPS basis points,
  rounded half-up to the cent) + flat shipping (CART_FLAT_SHIPPING_CENTS).
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from flask import current_app

from sitewizard.errors import ValidationError

_CENT = Decimal("0.01")


def to_cents(price):
    """Convert a price like 10, 10.5 or "10.50" into integer cents.

    Raises:
        ValidationError: Not a number, negative, or finer than one cent.
    """
    if isinstance(price, bool) or price is None:
        raise ValidationError("Item price must be a number", details=repr(price))
    try:
        amount = Decimal(str(price).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Item price must be a number", details=repr(price))

    if not amount.is_finite():
        raise ValidationError("Item price must be a number", details=repr(price))
    if amount < 0:
        raise ValidationError("Item price cannot be negative", details=str(amount))
    if amount != amount.quantize(_CENT):
        raise ValidationError(
            "Item price cannot have more than two decimal places", details=str(amount)
        )
    return int(amount * 100)


def _to_quantity(quantity):
    if isinstance(quantity, bool):
        raise ValidationError("Item quantity must be a positive integer")
    if isinstance(quantity, str) and quantity.strip().isdigit():
        quantity = int(quantity.strip())
    if not isinstance(quantity, int) or quantity < 1:
        raise ValidationError(
            "Item quantity must be a positive integer", details=repr(quantity)
        )
    return quantity


def parse_line_items(cart):
    """Validate a cart and return a list of normalized line items.

    Each returned item is a dict with name, unit_cents, quantity and
    line_cents.
    """
    if not isinstance(cart, list) or not cart:
        raise ValidationError("cart must be a non-empty list of items")

    items = []
    for index, raw in enumerate(cart):
        if not isinstance(raw, dict):
            raise ValidationError(f"cart[{index}] must be an object")
        if "price" not in raw or "quantity" not in raw:
            raise ValidationError(f"cart[{index}] requires price and quantity")

        unit_cents = to_cents(raw["price"])
        quantity = _to_quantity(raw["quantity"])
        name = str(raw.get("name") or f"Item {index + 1}")[:200]
        items.append({
            "name": name,
            "unit_cents": unit_cents,
            "quantity": quantity,
            "line_cents": unit_cents * quantity,
        })
    return items


def subtotal_cents(items):
    return sum(item["line_cents"] for item in items)


def tax_cents(subtotal, rate_bps):
    """Tax on ``subtotal`` at ``rate_bps`` basis points, rounded half-up."""
    tax = Decimal(subtotal) * Decimal(rate_bps) / Decimal(10000)
    return int(tax.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_cents(cents):
    """2500 -> "25.00"."""
    sign = "-" if cents < 0 else ""
    cents = abs(cents)
    return f"{sign}{cents // 100}.{cents % 100:02d}"


# ──────────────────────────────────────────────
# Policies
# ──────────────────────────────────────────────

def payment_order_totals(items):
    """Totals sent to the payment provider: no tax, no shipping."""
    subtotal = subtotal_cents(items)
    return {
        "subtotal_cents": subtotal,
        "total_cents": subtotal,
        "subtotal": format_cents(subtotal),
        "total": format_cents(subtotal),
    }


def cart_checkout_totals(items, rate_bps=None, shipping_cents=None):
    """Totals shown on the cart page: subtotal + tax + flat shipping."""
    if rate_bps is None:
        rate_bps = current_app.config.get("CART_TAX_RATE_BPS", 800)
    if shipping_cents is None:
        shipping_cents = current_app.config.get("CART_FLAT_SHIPPING_CENTS", 1000)

    subtotal = subtotal_cents(items)
    tax = tax_cents(subtotal, rate_bps)
    total = subtotal + tax + shipping_cents
    return {
        "subtotal_cents": subtotal,
        "tax_cents": tax,
        "shipping_cents": shipping_cents,
        "total_cents": total,
        "subtotal": format_cents(subtotal),
        "tax": format_cents(tax),
        "shipping": format_cents(shipping_cents),
        "total": format_cents(total),
    }
