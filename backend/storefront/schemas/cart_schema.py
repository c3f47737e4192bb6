from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CartItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    name: str
    unit_price: int
    image: Optional[str] = None
    quantity: int
    line_total: int


class CartOut(BaseModel):
    ready: bool
    open: bool = False
    items: Optional[List[CartItemOut]] = None
    subtotal: Optional[int] = None


class AddItemIn(BaseModel):
    id: Optional[str] = None
    slug: Optional[str] = None
    name: str = Field(min_length=1)
    unit_price: int = Field(gt=0)
    image: Optional[str] = None
    quantity: float = Field(default=1, le=1000)


class SetQuantityIn(BaseModel):
    quantity: Any


class CheckoutIn(BaseModel):
    items: Any = None
    origin: Optional[str] = None


class CheckoutOut(BaseModel):
    ok: bool = True
    url: str
    session_id: Optional[str] = None


class ReserveIn(BaseModel):
    catalog_id: str = Field(min_length=1)


class ReleaseIn(BaseModel):
    catalog_id: str = Field(min_length=1)
    count: int = 1


class CompleteOrderIn(BaseModel):
    session_id: Optional[str] = None


class DrawerIn(BaseModel):
    open: bool
