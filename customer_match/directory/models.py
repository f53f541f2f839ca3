"""Customer record shapes exchanged with the directory service."""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CandidateMatch(BaseModel):
    """A directory entry that may correspond to the customer being created."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: Union[int, str] = Field(..., description="Stable directory identifier")
    name: str = Field(default="", description="Customer display name")
    phone: Optional[str] = Field(default=None, description="Phone as stored")
    email: Optional[str] = Field(default=None, description="Email address")
    type: Optional[str] = Field(default=None, description="Category tag")
    current_balance: Optional[float] = Field(
        default=None, alias="currentBalance", description="Outstanding balance"
    )

    @field_validator("name", mode="before")
    @classmethod
    def _null_name(cls, value):
        # Directory records may carry "name": null
        return "" if value is None else value


class NewCustomerRequest(BaseModel):
    """Payload handed to the external create operation."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    phone: str
    city: str
    type: str
    credit_limit: float = Field(..., alias="creditLimit", ge=0)
    initial_credit: Optional[float] = Field(
        default=None, alias="initialCredit", ge=0
    )
