from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, constr


class ContactRecord(BaseModel):
    """One parsed row of an uploaded contact sheet."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    first_name: str = Field(alias="FirstName", min_length=1, max_length=100)
    phone: str = Field(alias="Phone", min_length=1, max_length=20)
    notes: str = Field(default="", alias="Notes", max_length=1000)


CountryCode = constr(pattern=r"^\+\d{1,4}$")
MobileDigits = constr(pattern=r"^\d{6,15}$")
EmailAddress = constr(pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class MobileNumber(BaseModel):
    country_code: CountryCode
    number: MobileDigits


class AgentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=2, max_length=100)
    email: EmailAddress
    mobile: MobileNumber
    is_active: bool = True


class MobileNumberUpdate(BaseModel):
    country_code: CountryCode | None = None
    number: MobileDigits | None = None


class AgentUpdate(BaseModel):
    """Partial agent edit; fields left out keep their current value."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=2, max_length=100)
    email: EmailAddress | None = None
    mobile: MobileNumberUpdate | None = None
    is_active: bool | None = None


class AgentActiveUpdate(BaseModel):
    is_active: bool


class TaskStatusUpdate(BaseModel):
    status: Literal["assigned", "in_progress", "completed"]


class DistributionSummaryModel(BaseModel):
    total_agents: int = Field(ge=0)
    items_per_agent: int = Field(ge=0)
    remainder_items: int = Field(default=0, ge=0)
