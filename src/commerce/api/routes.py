"""FastAPI routes for the Commerce domain: cart, orders, customizations, products."""

import json

import structlog
from fastapi import APIRouter, Depends, Header, Request
from protean.utils.globals import current_domain

from commerce.api.auth import Principal, get_principal, require_admin
from commerce.api.schemas import (
    AddCartItemRequest,
    CalculatePriceRequest,
    ConfirmPaymentRequest,
    DesignCustomizationRequest,
    PlaceOrderRequest,
    RegisterProductRequest,
    RestockProductRequest,
    UpdateCartItemRequest,
    UpdateCustomizationRequest,
    UpdateOrderStatusRequest,
)
from commerce.api.serializers import cart_view, customization_view, order_view, product_view
from commerce.cart.cart import Cart
from commerce.cart.items import (
    AddCartItem,
    AddCustomizationToCart,
    ClearCart,
    OpenCart,
    RemoveCartItem,
    UpdateCartItemQuantity,
)
from commerce.customization.customization import Customization
from commerce.customization.design import (
    DeleteCustomization,
    DesignCustomization,
    UpdateCustomization,
    load_customization,
)
from commerce.customization.pricing import PricingCalculator
from commerce.inventory.catalogue import RegisterProduct, RestockProduct
from commerce.inventory.ledger import InventoryLedger
from commerce.order.cancellation import CancelOrder
from commerce.order.fulfillment import UpdateOrderStatus
from commerce.order.placement import PlaceOrder
from commerce.order.queries import all_orders, load_order, order_for, orders_of
from commerce.payment.confirmation import ConfirmPayment
from commerce.payment.gateway import get_gateway
from commerce.payment.initiation import InitiatePayment
from commerce.payment.webhook import ReconcileGatewayEvent

logger = structlog.get_logger(__name__)


def _ok(data) -> dict:
    return {"success": True, "data": data}


def _cart_of(user_id) -> dict:
    return cart_view(current_domain.repository_for(Cart).for_user(user_id))


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("")
async def get_cart(principal: Principal = Depends(get_principal)) -> dict:
    cart = current_domain.process(OpenCart(user_id=principal.uid), asynchronous=False)
    return _ok(cart_view(cart))


@cart_router.post("/items")
async def add_cart_item(body: AddCartItemRequest, principal: Principal = Depends(get_principal)) -> dict:
    command = AddCartItem(
        user_id=principal.uid,
        item_type=body.item_type,
        item_id=body.item_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return _ok(_cart_of(principal.uid))


@cart_router.put("/items/{line_id}")
async def update_cart_item(
    line_id: str, body: UpdateCartItemRequest, principal: Principal = Depends(get_principal)
) -> dict:
    command = UpdateCartItemQuantity(
        user_id=principal.uid,
        line_id=line_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return _ok(_cart_of(principal.uid))


@cart_router.delete("/items/{line_id}")
async def remove_cart_item(line_id: str, principal: Principal = Depends(get_principal)) -> dict:
    current_domain.process(RemoveCartItem(user_id=principal.uid, line_id=line_id), asynchronous=False)
    return _ok(_cart_of(principal.uid))


@cart_router.delete("")
async def clear_cart(principal: Principal = Depends(get_principal)) -> dict:
    current_domain.process(ClearCart(user_id=principal.uid), asynchronous=False)
    return _ok(_cart_of(principal.uid))


@cart_router.post("/from-customization/{customization_id}")
async def add_customization_to_cart(customization_id: str, principal: Principal = Depends(get_principal)) -> dict:
    command = AddCustomizationToCart(user_id=principal.uid, customization_id=customization_id)
    current_domain.process(command, asynchronous=False)
    return _ok(_cart_of(principal.uid))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201)
async def place_order(body: PlaceOrderRequest, principal: Principal = Depends(get_principal)) -> dict:
    command = PlaceOrder(
        user_id=principal.uid,
        shipping_info=json.dumps(body.shipping_info.model_dump()),
        payment_method=body.payment_method,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return _ok(order_view(load_order(order_id)))


@order_router.post("/webhook")
async def gateway_webhook(request: Request, stripe_signature: str | None = Header(default=None)) -> dict:
    """Gateway callback. The raw body is needed for signature verification."""
    payload = await request.body()
    event = get_gateway().construct_event(payload, stripe_signature)

    logger.info("Gateway webhook received", event_id=event.event_id, event_type=event.event_type)
    command = ReconcileGatewayEvent(
        event_id=event.event_id,
        event_type=event.event_type,
        transaction_id=event.transaction_id,
        failure_reason=event.failure_reason,
    )
    current_domain.process(command, asynchronous=False)
    return {"received": True}


@order_router.get("/myorders")
async def my_orders(principal: Principal = Depends(get_principal)) -> dict:
    orders = orders_of(principal.uid)
    return {"success": True, "count": len(orders), "data": [order_view(o) for o in orders]}


@order_router.get("")
async def list_orders(principal: Principal = Depends(require_admin)) -> dict:
    orders = all_orders(principal.role)
    return {
        "success": True,
        "count": len(orders),
        "total_amount": round(sum(o.total_price for o in orders), 2),
        "data": [order_view(o) for o in orders],
    }


@order_router.get("/{order_id}")
async def get_order(order_id: str, principal: Principal = Depends(get_principal)) -> dict:
    return _ok(order_view(order_for(order_id, principal.uid, principal.role)))


@order_router.put("/{order_id}/status")
async def update_order_status(
    order_id: str, body: UpdateOrderStatusRequest, principal: Principal = Depends(require_admin)
) -> dict:
    command = UpdateOrderStatus(order_id=order_id, status=body.status, role=principal.role)
    current_domain.process(command, asynchronous=False)
    return _ok(order_view(load_order(order_id)))


@order_router.post("/{order_id}/pay")
async def pay_order(order_id: str, principal: Principal = Depends(get_principal)) -> dict:
    result = current_domain.process(InitiatePayment(order_id=order_id, user_id=principal.uid), asynchronous=False)
    return _ok(
        {
            "order": order_view(load_order(order_id)),
            "client_secret": result["client_secret"],
            "payment_reference": result["payment_reference"],
        }
    )


@order_router.post("/{order_id}/confirm-payment")
async def confirm_payment(
    order_id: str, body: ConfirmPaymentRequest | None = None, principal: Principal = Depends(get_principal)
) -> dict:
    command = ConfirmPayment(
        order_id=order_id,
        user_id=principal.uid,
        role=principal.role,
        transaction_id=body.transaction_id if body else None,
    )
    current_domain.process(command, asynchronous=False)
    return _ok(order_view(load_order(order_id)))


@order_router.put("/{order_id}/cancel")
async def cancel_order(order_id: str, principal: Principal = Depends(get_principal)) -> dict:
    command = CancelOrder(order_id=order_id, user_id=principal.uid, role=principal.role)
    current_domain.process(command, asynchronous=False)
    return _ok(order_view(load_order(order_id)))


# ---------------------------------------------------------------------------
# Customization Router
# ---------------------------------------------------------------------------
customization_router = APIRouter(prefix="/customizations", tags=["customizations"])


@customization_router.post("/calculate-price")
async def calculate_price(body: CalculatePriceRequest) -> dict:
    quote = PricingCalculator().price(
        fragrance_type=body.fragrance.fragrance_type,
        intensity=body.fragrance.intensity,
        bottle_style=body.bottle.style,
        bottle_material=body.bottle.material,
        bottle_size=body.bottle.size,
        packaging=body.packaging,
        has_label_text=bool(body.label and body.label.text),
        quantity=body.quantity,
    )
    return _ok(quote.to_dict())


@customization_router.post("", status_code=201)
async def design_customization(
    body: DesignCustomizationRequest, principal: Principal = Depends(get_principal)
) -> dict:
    command = DesignCustomization(
        user_id=principal.uid,
        name=body.name,
        fragrance_type=body.fragrance.fragrance_type,
        intensity=body.fragrance.intensity,
        notes=json.dumps(body.fragrance.notes),
        bottle_style=body.bottle.style,
        bottle_color=body.bottle.color,
        bottle_size=body.bottle.size,
        bottle_material=body.bottle.material,
        label_text=body.label.text,
        label_font=body.label.font,
        label_color=body.label.color,
        packaging=body.packaging,
        quantity=body.quantity,
        images=json.dumps(body.images),
    )
    customization_id = current_domain.process(command, asynchronous=False)
    return _ok(customization_view(load_customization(customization_id)))


@customization_router.get("")
async def my_customizations(principal: Principal = Depends(get_principal)) -> dict:
    designs = current_domain.repository_for(Customization).for_user(principal.uid)
    return {"success": True, "count": len(designs), "data": [customization_view(c) for c in designs]}


@customization_router.get("/{customization_id}")
async def get_customization(customization_id: str, principal: Principal = Depends(get_principal)) -> dict:
    customization = load_customization(customization_id)
    customization.assert_accessible_by(principal.uid, principal.role)
    return _ok(customization_view(customization))


@customization_router.put("/{customization_id}")
async def update_customization(
    customization_id: str, body: UpdateCustomizationRequest, principal: Principal = Depends(get_principal)
) -> dict:
    fragrance = body.fragrance
    bottle = body.bottle
    label = body.label
    command = UpdateCustomization(
        customization_id=customization_id,
        user_id=principal.uid,
        role=principal.role,
        name=body.name,
        fragrance_type=fragrance.fragrance_type if fragrance else None,
        intensity=fragrance.intensity if fragrance else None,
        bottle_style=bottle.style if bottle else None,
        bottle_color=bottle.color if bottle else None,
        bottle_size=bottle.size if bottle else None,
        bottle_material=bottle.material if bottle else None,
        label_text=label.text if label else None,
        label_font=label.font if label else None,
        label_color=label.color if label else None,
        packaging=body.packaging,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return _ok(customization_view(load_customization(customization_id)))


@customization_router.delete("/{customization_id}")
async def delete_customization(customization_id: str, principal: Principal = Depends(get_principal)) -> dict:
    command = DeleteCustomization(customization_id=customization_id, user_id=principal.uid, role=principal.role)
    current_domain.process(command, asynchronous=False)
    return _ok({})


# ---------------------------------------------------------------------------
# Product Router (stock seeding)
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201)
async def register_product(body: RegisterProductRequest, principal: Principal = Depends(require_admin)) -> dict:
    command = RegisterProduct(
        name=body.name,
        price=body.price,
        discount_percentage=body.discount_percentage,
        images=json.dumps(body.images),
        stock=body.stock,
    )
    product_id = current_domain.process(command, asynchronous=False)
    return _ok(product_view(InventoryLedger().product(product_id)))


@product_router.post("/{product_id}/restock")
async def restock_product(
    product_id: str, body: RestockProductRequest, principal: Principal = Depends(require_admin)
) -> dict:
    current_domain.process(RestockProduct(product_id=product_id, quantity=body.quantity), asynchronous=False)
    return _ok(product_view(InventoryLedger().product(product_id)))
