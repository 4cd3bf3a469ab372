from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

AppliesToValue = Literal["all", "products", "services", "categories"]
ProductTypeValue = Literal["product", "service"]


class TaxRule(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    rate: Decimal
    label: str
    applies_to: str
    category_ids: list[str]
    product_ids: list[str]
    region_country: str | None = None
    region_state: str | None = None
    region_city: str | None = None
    region_zip_codes: list[str]
    priority: int
    is_active: bool
    created_at: datetime


class TaxRuleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    rate: Decimal = Field(..., ge=0, le=100, decimal_places=4)
    label: str = Field("Tax", max_length=64)
    applies_to: AppliesToValue = "all"
    category_ids: list[str] = Field(default_factory=list)
    product_ids: list[str] = Field(default_factory=list)
    region_country: str | None = None
    region_state: str | None = None
    region_city: str | None = None
    region_zip_codes: list[str] = Field(default_factory=list)
    priority: int = Field(0, ge=0)
    is_active: bool = True


class TaxRuleUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    rate: Decimal | None = Field(None, ge=0, le=100, decimal_places=4)
    label: str | None = Field(None, max_length=64)
    applies_to: AppliesToValue | None = None
    category_ids: list[str] | None = None
    product_ids: list[str] | None = None
    region_country: str | None = None
    region_state: str | None = None
    region_city: str | None = None
    region_zip_codes: list[str] | None = None
    priority: int | None = Field(None, ge=0)
    is_active: bool | None = None


class SaleRegion(BaseModel):
    country: str | None = None
    state: str | None = None
    city: str | None = None
    zip_code: str | None = None


class TaxQuoteItem(BaseModel):
    product_id: str | None = None
    category_id: str | None = None
    product_type: ProductTypeValue | None = None
    subtotal: Decimal = Field(..., ge=0)


class TaxQuoteRequest(BaseModel):
    items: list[TaxQuoteItem] = Field(..., min_length=1)
    region: SaleRegion | None = None


class ItemTax(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_index: int
    tax: Decimal
    rate: Decimal
    label: str


class TaxQuote(BaseModel):
    total_tax: Decimal
    currency: str
    items: list[ItemTax]
