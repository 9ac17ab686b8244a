"""
Database Schemas for the Foodify storefront

The store is schemaless: these models only check that the fields this service
relies on are present (truthy) and keep every other field (extra="allow").

- Food -> "added" (user listings); "all-Foods" holds the same shape
"""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _present(value: Any) -> Any:
    if not value:
        raise ValueError("field is required")
    return value


class AddedBy(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: Any = Field(..., description="Owner email, used for ownership checks")

    @field_validator("email")
    @classmethod
    def email_present(cls, value: Any) -> Any:
        return _present(value)


class Food(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Any = Field(..., description="Food name")
    addedBy: AddedBy = Field(..., description="User who listed the food")
    createdAt: Optional[datetime] = Field(None, description="Set by the server on insert")

    @field_validator("name")
    @classmethod
    def name_present(cls, value: Any) -> Any:
        return _present(value)
