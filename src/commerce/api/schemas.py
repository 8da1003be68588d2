"""Pydantic request schemas for the Commerce API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands.
"""

from typing import Literal

from pydantic import BaseModel, Field

ItemTypeLiteral = Literal["product", "customization"]
PaymentMethodLiteral = Literal["credit_card", "debit_card", "easypaisa", "jazzcash", "bank_transfer", "cod"]
OrderStatusLiteral = Literal["processing", "confirmed", "shipped", "delivered", "cancelled"]


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    item_type: ItemTypeLiteral
    item_id: str
    quantity: int = Field(1, ge=1)

    model_config = {
        "json_schema_extra": {"examples": [{"item_type": "product", "item_id": "prod-001", "quantity": 2}]}
    }


class UpdateCartItemRequest(BaseModel):
    quantity: int  # zero or less removes the line


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class ShippingInfoSchema(BaseModel):
    address: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    country: str = Field(min_length=1, max_length=100)
    zip_code: str = Field(min_length=1, max_length=20)
    phone: str = Field(min_length=1, max_length=30)


class PlaceOrderRequest(BaseModel):
    shipping_info: ShippingInfoSchema
    payment_method: PaymentMethodLiteral

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_info": {
                        "address": "12 Mall Road",
                        "city": "Lahore",
                        "state": "Punjab",
                        "country": "Pakistan",
                        "zip_code": "54000",
                        "phone": "+92-300-0000000",
                    },
                    "payment_method": "credit_card",
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatusLiteral


class ConfirmPaymentRequest(BaseModel):
    transaction_id: str | None = None


# ---------------------------------------------------------------------------
# Customizations
# ---------------------------------------------------------------------------
class FragranceSchema(BaseModel):
    fragrance_type: str
    intensity: str = "medium"
    notes: list[str] = Field(default_factory=list)


class BottleSchema(BaseModel):
    style: str
    color: str
    size: int
    material: str = "glass"


class LabelSchema(BaseModel):
    text: str | None = Field(None, max_length=100)
    font: str = "sans-serif"
    color: str | None = None


class DesignCustomizationRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    fragrance: FragranceSchema
    bottle: BottleSchema
    label: LabelSchema = Field(default_factory=LabelSchema)
    packaging: str = "standard"
    quantity: int = Field(ge=1, le=10)
    images: list[str] = Field(default_factory=list)


class FragranceUpdateSchema(BaseModel):
    fragrance_type: str | None = None
    intensity: str | None = None


class BottleUpdateSchema(BaseModel):
    style: str | None = None
    color: str | None = None
    size: int | None = None
    material: str | None = None


class LabelUpdateSchema(BaseModel):
    text: str | None = Field(None, max_length=100)
    font: str | None = None
    color: str | None = None


class UpdateCustomizationRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    fragrance: FragranceUpdateSchema | None = None
    bottle: BottleUpdateSchema | None = None
    label: LabelUpdateSchema | None = None
    packaging: str | None = None
    quantity: int | None = Field(None, ge=1, le=10)


class CalculatePriceRequest(BaseModel):
    fragrance: FragranceSchema
    bottle: BottleSchema
    label: LabelSchema | None = None
    packaging: str = "standard"
    quantity: int


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
class RegisterProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    price: float = Field(ge=0)
    discount_percentage: float = Field(0.0, ge=0, le=100)
    images: list[str] = Field(default_factory=list)
    stock: int = Field(0, ge=0)


class RestockProductRequest(BaseModel):
    quantity: int = Field(ge=1)
