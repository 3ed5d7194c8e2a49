"""Tenant, professional, customer, service and assignment records."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from booking_engine.utils import new_id


class Tenant(BaseModel):
    """A business using the console. Opening hours bound every schedule."""
    id: str = Field(default_factory=lambda: new_id("TN"))
    slug: str
    name: str
    tax_id: Optional[str] = None
    open_time: time
    close_time: time
    timezone: Optional[str] = None
    active: bool = True

    @model_validator(mode="after")
    def _close_after_open(self) -> "Tenant":
        if self.close_time <= self.open_time:
            raise ValueError("close_time must be after open_time")
        return self


class Professional(BaseModel):
    id: str = Field(default_factory=lambda: new_id("PRO"))
    tenant_id: str
    name: str
    active: bool = True


class Customer(BaseModel):
    id: str = Field(default_factory=lambda: new_id("CUS"))
    tenant_id: str
    cpf: str
    phone: str
    name: str
    nickname: Optional[str] = None
    birth_date: Optional[date] = None
    created_at: datetime = Field(default_factory=datetime.now)
    active: bool = True


class Service(BaseModel):
    id: str = Field(default_factory=lambda: new_id("SVC"))
    tenant_id: str
    name: str
    duration_minutes: int = Field(gt=0)
    price: Decimal = Field(ge=0)
    active: bool = True


class ProfessionalServiceAssignment(BaseModel):
    """
    Links a professional to a service they perform.

    ``custom_price`` / ``custom_duration_minutes`` override the service's
    base values for this professional when set.
    """
    id: str = Field(default_factory=lambda: new_id("PS"))
    professional_id: str
    service_id: str
    custom_price: Optional[Decimal] = Field(default=None, ge=0)
    custom_duration_minutes: Optional[int] = Field(default=None, gt=0)
    active: bool = True


class EffectivePricing(BaseModel):
    """Price and duration actually used for a professional-service pair."""
    service_id: str
    service_name: str
    price: Decimal
    duration_minutes: int
    base_price: Decimal
    base_duration_minutes: int
    has_custom_price: bool = False
    has_custom_duration: bool = False


class ServiceProfessional(BaseModel):
    """A professional able to perform a given service, with effective values."""
    professional_id: str
    professional_name: str
    effective_price: Decimal
    effective_duration_minutes: int
    has_custom_price: bool = False
    has_custom_duration: bool = False
    active: bool = True
