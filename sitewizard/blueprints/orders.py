"""Orders blueprint — /api/orders/*

Route Map:
  POST /api/orders        — Create a payment order, returns the approval URL
  POST /api/orders/quote  — Cart-page totals (tax + flat shipping)
"""

import logging

from flask import Blueprint, jsonify

from sitewizard.decorators import api_operation, json_body
from sitewizard.extensions import limiter
from sitewizard.services import order_service, payment_service

logger = logging.getLogger(__name__)

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.route("", methods=["POST"])
@limiter.limit("20 per minute")
@api_operation("Failed to create order")
def create_order(identity):
    """Hand the cart to Stripe Checkout.

    Body: {"cart": [{"name", "price", "quantity"}, ...], "returnOrigin": "https://..."}
    """
    data = json_body()
    order_id, approval_url, totals = payment_service.create_payment_order(
        data.get("cart"),
        data.get("returnOrigin"),
        customer_email=identity.email,
    )
    return jsonify({
        "orderId": order_id,
        "approvalUrl": approval_url,
        "total": totals["total"],
    })


@orders_bp.route("/quote", methods=["POST"])
@api_operation("Failed to calculate totals")
def quote(identity):
    items = order_service.parse_line_items(json_body().get("cart"))
    totals = order_service.cart_checkout_totals(items)
    return jsonify({
        "subtotal": totals["subtotal"],
        "tax": totals["tax"],
        "shipping": totals["shipping"],
        "total": totals["total"],
    })
