from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class Tenant(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    name: str
    is_active: bool
    currency: str
    timezone: str
    tax_enabled: bool
    default_tax_rate: Decimal
    tax_label: str
    version: int


class TenantCreate(BaseModel):
    slug: str = Field(..., min_length=1, max_length=63)
    name: str = Field(..., min_length=1, max_length=255)
    currency: str | None = Field(None, min_length=3, max_length=3)
    timezone: str | None = None
    tax_enabled: bool = False
    default_tax_rate: Decimal = Field(Decimal(0), ge=0, le=100, decimal_places=4)
    tax_label: str = Field("Tax", max_length=64)


class TenantSettingsUpdate(BaseModel):
    version: int = Field(..., description="Settings version the client last read")
    name: str | None = Field(None, min_length=1, max_length=255)
    currency: str | None = Field(None, min_length=3, max_length=3)
    timezone: str | None = None
    tax_enabled: bool | None = None
    default_tax_rate: Decimal | None = Field(None, ge=0, le=100, decimal_places=4)
    tax_label: str | None = Field(None, max_length=64)
