"""Response payloads for aggregates returned by the API."""

import json


def _iso(value):
    return value.isoformat() if value else None


def cart_view(cart) -> dict:
    return {
        "user_id": str(cart.user_id),
        "items": [
            {
                "id": str(line.id),
                "item_type": line.item_type,
                "item_ref": str(line.item_ref),
                "name": line.name,
                "price": line.unit_price,
                "quantity": line.quantity,
                "image": line.image_ref or "",
            }
            for line in cart.lines
        ],
        "total_items": cart.total_items or 0,
        "total_price": cart.total_price or 0.0,
        "updated_at": _iso(cart.updated_at),
    }


def order_view(order) -> dict:
    shipping = order.shipping_info
    return {
        "id": str(order.id),
        "user_id": str(order.user_id),
        "order_items": [
            {
                "id": str(item.id),
                "item_type": item.item_type,
                "item_ref": str(item.item_ref),
                "name": item.name,
                "price": item.price,
                "quantity": item.quantity,
                "image": item.image_ref or "",
            }
            for item in order.order_items
        ],
        "shipping_info": shipping.to_dict() if shipping else None,
        "payment_info": order.payment.to_dict(),
        "items_price": order.items_price,
        "tax_price": order.tax_price,
        "shipping_price": order.shipping_price,
        "total_price": order.total_price,
        "order_status": order.order_status,
        "delivered_at": _iso(order.delivered_at),
        "cancelled_at": _iso(order.cancelled_at),
        "created_at": _iso(order.created_at),
    }


def customization_view(customization) -> dict:
    fragrance = customization.fragrance
    bottle = customization.bottle
    label = customization.label
    breakdown = customization.price_breakdown
    return {
        "id": str(customization.id),
        "user_id": str(customization.user_id),
        "name": customization.name,
        "fragrance": {
            "fragrance_type": fragrance.fragrance_type,
            "intensity": fragrance.intensity,
            "notes": json.loads(fragrance.notes) if fragrance.notes else [],
        },
        "bottle": bottle.to_dict() if bottle else None,
        "label": label.to_dict() if label else None,
        "packaging": customization.packaging,
        "quantity": customization.quantity,
        "price_breakdown": breakdown.to_dict() if breakdown else None,
        "unit_price": customization.unit_price,
        "total_price": customization.total_price,
        "images": json.loads(customization.images) if customization.images else [],
        "status": customization.status,
        "created_at": _iso(customization.created_at),
    }


def product_view(product) -> dict:
    return {
        "id": str(product.id),
        "name": product.name,
        "price": product.price,
        "discount_percentage": product.discount_percentage or 0.0,
        "final_price": product.final_price,
        "images": json.loads(product.images) if product.images else [],
        "stock": product.stock or 0,
    }
