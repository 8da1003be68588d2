"""Commerce bounded context: cart, order placement, inventory and payments.

Everything that has to change together when a cart becomes an order lives in
this one domain, so a single unit of work can commit (or discard) the order,
the stock decrements, the customization status changes and the emptied cart.
"""

from protean.domain import Domain

commerce = Domain(name="commerce")
