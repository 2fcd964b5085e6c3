"""Payment service — one-off payment orders via Stripe Checkout.

create_payment_order() turns validated line items into a Checkout
Session in "payment" mode and returns (order_id, approval_url). The
amount charged is the payment-order total (no tax, no shipping); see
order_service.
"""

import logging

import stripe
from flask import current_app

from sitewizard.errors import UpstreamError, ValidationError
from sitewizard.services import order_service

logger = logging.getLogger(__name__)


def _validate_origin(return_origin):
    if not isinstance(return_origin, str) or not return_origin.strip():
        raise ValidationError("returnOrigin is required")
    origin = return_origin.strip().rstrip("/")
    if not origin.startswith(("http://", "https://")):
        raise ValidationError("returnOrigin must be an http(s) origin", details=origin)
    return origin


def create_payment_order(cart, return_origin, customer_email=None):
    """Create a Stripe Checkout Session for the cart.

    Args:
        cart: List of {name?, price, quantity} dicts.
        return_origin: Origin the buyer is sent back to after paying.
        customer_email: Prefills the Checkout email field.

    Returns:
        (order_id, approval_url, totals)

    Raises:
        ValidationError: Bad cart or origin.
        UpstreamError: Stripe rejected the request.
    """
    items = order_service.parse_line_items(cart)
    origin = _validate_origin(return_origin)
    totals = order_service.payment_order_totals(items)

    stripe.api_key = current_app.config["STRIPE_SECRET_KEY"]
    currency = current_app.config.get("PAYMENT_CURRENCY", "usd")

    params = {
        "mode": "payment",
        "line_items": [
            {
                "price_data": {
                    "currency": currency,
                    "unit_amount": item["unit_cents"],
                    "product_data": {"name": item["name"]},
                },
                "quantity": item["quantity"],
            }
            for item in items
        ],
        "success_url": f"{origin}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{origin}/checkout/cancel",
        "metadata": {"total": totals["total"]},
    }
    if customer_email:
        params["customer_email"] = customer_email

    try:
        session = stripe.checkout.Session.create(**params)
    except stripe.error.StripeError as e:
        logger.error(f"Stripe error creating payment order: {e}")
        raise UpstreamError("Failed to create order", details=str(e))

    logger.info(f"Payment order {session.id} created for {totals['total']} {currency}")
    return session.id, session.url, totals
