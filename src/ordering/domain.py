"""Ordering bounded context — Shopping Cart, Orders and Payment Reconciliation.

Handles the per-customer shopping cart (CQRS), the checkout flow that turns
an active cart into an order snapshot, and reconciliation of order and cart
state from payment-gateway-reported payment intent status.
"""

from protean.domain import Domain

ordering = Domain(name="ordering")
