from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt


class LineItem(BaseModel):
    """A priced, checkout-ready line. Built fresh for every attempt, never stored."""

    model_config = ConfigDict(frozen=True)
    currency: Literal["usd"] = "usd"
    display_name: str = Field(min_length=1)
    image_url: Optional[str] = None
    unit_amount_cents: StrictInt = Field(gt=0)
    quantity: StrictInt = Field(ge=1)

    @property
    def amount_cents(self) -> int:
        return self.unit_amount_cents * self.quantity

    def to_payload(self) -> Dict[str, Any]:
        product_data: Dict[str, Any] = {"name": self.display_name}
        if self.image_url:
            product_data["images"] = [self.image_url]
        return {
            "price_data": {
                "currency": self.currency,
                "unit_amount": self.unit_amount_cents,
                "product_data": product_data,
            },
            "quantity": self.quantity,
        }


class PriceLineItem(BaseModel):
    """A line referring to a price registered with the payment processor."""

    model_config = ConfigDict(frozen=True)
    price_id: str = Field(min_length=1)
    quantity: StrictInt = Field(ge=1)

    def to_payload(self) -> Dict[str, Any]:
        return {"price": self.price_id, "quantity": self.quantity}


CheckoutLine = Union[LineItem, PriceLineItem]
