from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Option(BaseModel):
    model_config = ConfigDict(extra="allow")

    value: str = ""
    # Checked by the price resolver, which falls back on anything unusable.
    price: Any = None
    image: str | None = None


class VariationGroup(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    options: list[Option] = []


class LineSelection(BaseModel):
    variation_index: int = 0
    option_index: int = 0


class CartLine(BaseModel):
    """One cart row as returned by ``GET /cart``.

    ``variation`` is kept as the server sent it (usually a JSON string) and
    decoded on demand by ``glowmify.services.pricing``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    product_id: str = Field(default="", validation_alias=AliasChoices("product_id", "item_id"))
    name: str = Field(default="", validation_alias=AliasChoices("name", "item_name"))
    quantity: int = Field(default=1, ge=1)
    price: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    variation: str | list | None = None
    variation_index: int = 0
    option_index: int = 0
    image: str | None = Field(default=None, validation_alias=AliasChoices("image", "item_image"))
    store_id: str | None = None
    store_name: str | None = None

    @field_validator("id", "product_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("store_id", mode="before")
    @classmethod
    def coerce_store_id(cls, v: Any) -> str | None:
        return None if v is None else str(v)

    @field_validator("quantity", mode="before")
    @classmethod
    def default_quantity(cls, v: Any) -> Any:
        return v or 1

    @field_validator("price", mode="before")
    @classmethod
    def default_price(cls, v: Any) -> Any:
        return v or 0

    @field_validator("variation_index", "option_index", mode="before")
    @classmethod
    def default_index(cls, v: Any) -> Any:
        return v or 0


class CartLineAdd(BaseModel):
    item_id: str
    quantity: int = Field(default=1, ge=1)
    variation: int = Field(default=0, ge=0)
    option: int = Field(default=0, ge=0)


class CartLineUpdate(BaseModel):
    quantity: int = Field(ge=1)
    variation: int = Field(default=0, ge=0)
    option: int = Field(default=0, ge=0)


class PricedLine(BaseModel):
    line_id: str
    unit_price: float
    quantity: int
    line_total: float


class CartSummary(BaseModel):
    lines: list[PricedLine]
    subtotal: float
    discount: float
    total: float
    promo_applied: bool
    selected_count: int


class CheckoutItem(BaseModel):
    cart_id: str
    product_id: str
    name: str
    quantity: int
    unit_price: float
    variation_name: str | None = None
    option_value: str | None = None
    option_image: str | None = None


class CheckoutRequest(BaseModel):
    cart_ids: list[str]
    total_amount: float = Field(ge=0)
    address_id: str
    items: list[CheckoutItem] = []


class OrderConfirmation(BaseModel):
    model_config = ConfigDict(extra="allow")

    order_id: str = Field(validation_alias=AliasChoices("order_id", "orderId", "id", "_id"))
    status: str = "pending"
    total_amount: float | None = Field(
        default=None, validation_alias=AliasChoices("total_amount", "totalAmount"),
    )

    @field_validator("order_id", mode="before")
    @classmethod
    def coerce_order_id(cls, v: Any) -> str:
        return str(v)
